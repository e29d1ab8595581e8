"""
GameStore: field-addressable record store over a SQLAlchemy Session

The engine never touches the ORM directly for room/player/bid state; it goes
through these operations. The one primitive that must be atomic at the
storage layer is conditional_update_room(): a single UPDATE ... WHERE whose
row count tells the caller whether its predicate still held.
"""
from functools import wraps
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import Bid, EventLog, Player, Room, RoundResultRecord
from core.exceptions import (
    BidAlreadySubmitted,
    PlayerNotFound,
    RoomNotFound,
    StorageError,
)
from services.broadcast_service import broadcaster

logger = logging.getLogger(__name__)


def _storage_errors(func):
    """Re-raise driver/ORM failures as StorageError"""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Storage failure in {func.__name__}: {e}", exc_info=True)
            raise StorageError(f"{func.__name__} failed") from e

    return wrapper


class GameStore:
    """Storage collaborator for one request's Session"""

    def __init__(self, db: Session):
        self.db = db

    # ============ Rooms ============

    @_storage_errors
    def get_room(self, room_id: str) -> Room:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(room_id)
        return room

    @_storage_errors
    def update_room(self, room_id: str, fields: Dict[str, Any]) -> None:
        updated = self.db.query(Room).filter(
            Room.id == room_id
        ).update(fields, synchronize_session=False)
        if not updated:
            raise RoomNotFound(room_id)
        self.db.expire_all()

    @_storage_errors
    def conditional_update_room(self, room_id: str, fields: Dict[str, Any], *conditions) -> bool:
        """
        Update the room only if every condition holds on its current row.

        Parameters:
            room_id: Room id
            fields: column -> new value
            conditions: SQLAlchemy expressions on Room columns,
                        e.g. Room.last_resolved_round < 3

        Returns:
            True if exactly this call changed the row, False otherwise
        """
        updated = self.db.query(Room).filter(
            Room.id == room_id,
            *conditions
        ).update(fields, synchronize_session=False)
        self.db.expire_all()
        return updated == 1

    # ============ Players ============

    @_storage_errors
    def list_players(self, room_id: str) -> List[Player]:
        return self.db.query(Player).filter(
            Player.room_id == room_id
        ).order_by(Player.joined_at, Player.id).all()

    @_storage_errors
    def get_player(self, player_id: str) -> Player:
        player = self.db.query(Player).filter(Player.id == player_id).first()
        if not player:
            raise PlayerNotFound(player_id)
        return player

    @_storage_errors
    def update_player(self, player_id: str, fields: Dict[str, Any]) -> None:
        updated = self.db.query(Player).filter(
            Player.id == player_id
        ).update(fields, synchronize_session=False)
        if not updated:
            raise PlayerNotFound(player_id)

    @_storage_errors
    def count_active_players(self, room_id: str) -> int:
        return self.db.query(Player).filter(
            Player.room_id == room_id,
            Player.is_eliminated == False
        ).count()

    # ============ Bids ============

    def insert_bid(self, room_id: str, player_id: str, round_number: int, amount: int) -> Bid:
        """
        Insert a bid; the unique constraint is the final duplicate guard.

        Raises:
            BidAlreadySubmitted: (room, player, round) already has a bid
            StorageError: any other database failure
        """
        bid = Bid(
            room_id=room_id,
            player_id=player_id,
            round_number=round_number,
            amount=amount
        )
        try:
            self.db.add(bid)
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise BidAlreadySubmitted(
                f"Player {player_id} already bid in round {round_number}"
            )
        except SQLAlchemyError as e:
            logger.error(f"Storage failure in insert_bid: {e}", exc_info=True)
            self.db.rollback()
            raise StorageError("insert_bid failed") from e
        return bid

    @_storage_errors
    def has_bid(self, room_id: str, player_id: str, round_number: int) -> bool:
        return self.db.query(Bid).filter(
            Bid.room_id == room_id,
            Bid.player_id == player_id,
            Bid.round_number == round_number
        ).count() > 0

    @_storage_errors
    def list_bids(self, room_id: str, round_number: int) -> List[Bid]:
        """Bids of a round, highest first; equal amounts keep submission order"""
        return self.db.query(Bid).filter(
            Bid.room_id == room_id,
            Bid.round_number == round_number
        ).order_by(Bid.amount.desc(), Bid.id.asc()).all()

    @_storage_errors
    def count_bids(self, room_id: str, round_number: int) -> int:
        return self.db.query(Bid.player_id).filter(
            Bid.room_id == room_id,
            Bid.round_number == round_number
        ).distinct().count()

    # ============ Round results ============

    @_storage_errors
    def save_round_result(self, record: RoundResultRecord) -> RoundResultRecord:
        self.db.add(record)
        self.db.flush()
        return record

    @_storage_errors
    def get_round_result(self, room_id: str, round_number: int) -> Optional[RoundResultRecord]:
        return self.db.query(RoundResultRecord).filter(
            RoundResultRecord.room_id == room_id,
            RoundResultRecord.round_number == round_number
        ).first()

    @_storage_errors
    def list_round_results(self, room_id: str) -> List[RoundResultRecord]:
        return self.db.query(RoundResultRecord).filter(
            RoundResultRecord.room_id == room_id
        ).order_by(RoundResultRecord.round_number).all()

    # ============ Events / notification ============

    @_storage_errors
    def log_event(self, room_id: str, event_type: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.db.add(EventLog(room_id=room_id, event_type=event_type, data=data or {}))

    def publish_round_result(self, room_id: str, payload: Dict[str, Any]) -> None:
        """Best-effort notification; never affects stored state"""
        delivered = broadcaster.publish(room_id, payload)
        logger.debug(f"Round result for room {room_id} delivered to {delivered} subscriber(s)")

    # ============ Transaction control ============

    @_storage_errors
    def commit(self) -> None:
        self.db.commit()
