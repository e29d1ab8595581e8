"""
ORM models

Room -> Players -> Bids, plus the per-round result record, player sessions
and the room event log.
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RoomStatus(str, enum.Enum):
    WAITING = "waiting"
    BIDDING = "bidding"
    RESULTS = "results"
    GAME_OVER = "game_over"


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(6), unique=True, nullable=False, index=True)
    status = Column(Enum(RoomStatus), nullable=False, default=RoomStatus.WAITING)
    current_round = Column(Integer, nullable=False, default=0)
    max_rounds = Column(Integer, nullable=False, default=10)
    items = Column(JSON, nullable=True)
    current_item = Column(JSON, nullable=True)
    host_player_id = Column(String(36), nullable=True)
    # Claim marker: highest round whose resolution rights were taken
    last_resolved_round = Column(Integer, nullable=False, default=0)
    # Bumped on every visible change; polling clients compare it
    state_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    players = relationship("Player", back_populates="room", order_by="Player.joined_at")


class Player(Base):
    __tablename__ = "players"

    id = Column(String(36), primary_key=True, default=_uuid)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    player_name = Column(String(20), nullable=False)
    capital = Column(Integer, nullable=False, default=1000)
    is_eliminated = Column(Boolean, nullable=False, default=False)
    is_ai = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    room = relationship("Room", back_populates="players")


class PlayerSession(Base):
    __tablename__ = "player_sessions"

    session_token = Column(String(64), primary_key=True)
    player_id = Column(String(36), ForeignKey("players.id"), nullable=False)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class Bid(Base):
    __tablename__ = "bids"
    __table_args__ = (
        UniqueConstraint("room_id", "player_id", "round_number", name="uq_bid_room_player_round"),
    )

    # Autoincrement id doubles as submission order for tie-breaks
    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    player_id = Column(String(36), ForeignKey("players.id"), nullable=False)
    round_number = Column(Integer, nullable=False)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    player = relationship("Player")


class RoundResultRecord(Base):
    __tablename__ = "round_results"
    __table_args__ = (
        UniqueConstraint("room_id", "round_number", name="uq_round_result_room_round"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    item = Column(JSON, nullable=False)
    bids = Column(JSON, nullable=False)
    winner_id = Column(String(36), nullable=False)
    winner_name = Column(String(20), nullable=False)
    winner_bid = Column(Integer, nullable=False)
    winner_gain = Column(Integer, nullable=False)
    eliminated = Column(JSON, nullable=False, default=list)
    game_over = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    event_type = Column(String(40), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
