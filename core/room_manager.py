"""
Room Manager: full Room lifecycle

Responsibilities:
1. Create a room (with its host player and session)
2. Join a waiting room
3. Start the game (host only, draws the session's items)
4. Look up rooms and player sessions

Principles:
- Single responsibility: rooms and membership only; rounds live in RoundManager
- Every phase change goes through RoomStateMachine
- Validate the data first, then act
"""
from sqlalchemy.orm import Session
from typing import Optional, Tuple
import logging

from models import Room, Player, PlayerSession, RoomStatus, EventLog
from core.state_machine import RoomStateMachine
from core.store import GameStore
from core.locks import with_room_lock
from core.exceptions import (
    RoomNotFound,
    RoomFull,
    InvalidPlayerCount,
    RoomNotAcceptingPlayers,
    UnauthorizedError,
    ValidationError,
)
from services.item_catalog import GAME_ITEMS, draw_items
from services.naming_service import (
    generate_room_code,
    generate_session_token,
    normalize_room_code,
    validate_player_name,
)
from services.state_service import bump_state_version
from database import get_settings, transactional

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10


class RoomManager:
    """Room lifecycle manager"""

    @staticmethod
    @transactional
    def create_room(db: Session, player_name: str, max_rounds: Optional[int] = None) -> Tuple[Room, Player, str]:
        """
        Create a room with its host player.

        Flow:
        1. Validate the host's name
        2. Generate a room code (retry on collision)
        3. Create Room, host Player and host session
        4. Log the event

        Parameters:
            db: SQLAlchemy Session
            player_name: host's display name
            max_rounds: rounds in this session (default from settings)

        Returns:
            (Room, host Player, session token)

        Note:
            @transactional commits or rolls back the whole unit
        """
        settings = get_settings()
        name = validate_player_name(player_name)
        rounds = max_rounds or settings.default_max_rounds
        if rounds < 1 or rounds > len(GAME_ITEMS):
            raise ValidationError(
                f"max_rounds must be between 1 and {len(GAME_ITEMS)}, got {rounds}"
            )

        # 1. Unique room code
        code = generate_room_code()
        attempts = 1
        while db.query(Room).filter(Room.code == code).first():
            if attempts >= MAX_CODE_ATTEMPTS:
                raise RuntimeError("Could not generate a unique room code")
            code = generate_room_code()
            attempts += 1
            logger.warning(f"Room code collision detected, regenerating: {code}")

        # 2. Room
        room = Room(code=code, status=RoomStatus.WAITING, max_rounds=rounds)
        db.add(room)
        db.flush()

        # 3. Host
        host = Player(
            room_id=room.id,
            player_name=name,
            capital=settings.starting_capital
        )
        db.add(host)
        db.flush()
        room.host_player_id = host.id

        token = RoomManager._issue_session(db, room.id, host.id)

        # 4. Event
        db.add(EventLog(
            room_id=room.id,
            event_type="ROOM_CREATED",
            data={"code": code, "host_player_id": host.id, "max_rounds": rounds}
        ))

        logger.info(f"Created room {room.id} with code {code}, host {host.id}")
        return room, host, token

    @staticmethod
    @transactional
    def join_room(db: Session, code: str, player_name: str) -> Tuple[Room, Player, str]:
        """
        Join a room by code.

        Preconditions:
        - room exists (code is case-insensitive)
        - room is WAITING
        - room has fewer than max_players players

        Returns:
            (Room, new Player, session token)

        Raises:
            InvalidPlayerName, RoomNotFound, RoomNotAcceptingPlayers, RoomFull
        """
        settings = get_settings()
        name = validate_player_name(player_name)

        room = RoomManager.get_room_by_code(db, code)
        room = with_room_lock(room.id, db).first()

        if room.status != RoomStatus.WAITING:
            raise RoomNotAcceptingPlayers("Game has already started.")

        if RoomManager.get_player_count(db, room.id) >= settings.max_players:
            raise RoomFull(f"Room is full (max {settings.max_players} players).")

        player = Player(
            room_id=room.id,
            player_name=name,
            capital=settings.starting_capital
        )
        db.add(player)
        db.flush()

        token = RoomManager._issue_session(db, room.id, player.id)

        db.add(EventLog(
            room_id=room.id,
            event_type="PLAYER_JOINED",
            data={"player_id": player.id, "player_name": name}
        ))
        bump_state_version(db, room.id, reason="player_joined")

        logger.info(f"Player {player.id} ({name}) joined room {room.id}")
        return room, player, token

    @staticmethod
    @transactional
    def start_game(db: Session, room_id: str, player_id: str) -> Room:
        """
        Start the game (WAITING -> BIDDING).

        Preconditions:
        1. Room exists and is WAITING
        2. Caller is the host
        3. At least min_players players

        Effects:
        - draws max_rounds items without replacement
        - current_round = 1, current_item = items[0]

        Raises:
            RoomNotFound, UnauthorizedError, InvalidPlayerCount,
            InvalidStateTransition
        """
        settings = get_settings()

        # 1. Lock
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        # 2. Host only
        if room.host_player_id != player_id:
            raise UnauthorizedError("Only the host can start the game")

        # 3. Players
        player_count = RoomManager.get_player_count(db, room_id)
        if player_count < settings.min_players:
            raise InvalidPlayerCount(
                f"Need at least {settings.min_players} players to start, got {player_count}"
            )

        items = draw_items(room.max_rounds)
        store = GameStore(db)
        room = RoomStateMachine.transition(
            store,
            room_id,
            RoomStatus.BIDDING,
            {"current_round": 1, "items": items, "current_item": items[0]}
        )

        store.log_event(room_id, "GAME_STARTED", {"player_count": player_count})
        bump_state_version(db, room_id, reason="game_started")

        logger.info(f"Started game in room {room_id} with {player_count} players")
        return room

    @staticmethod
    def get_room_by_code(db: Session, code: str) -> Room:
        """
        Raises:
            RoomNotFound
        """
        room = db.query(Room).filter(Room.code == normalize_room_code(code)).first()
        if not room:
            raise RoomNotFound(f"with code {code}")
        return room

    @staticmethod
    def get_player_count(db: Session, room_id: str) -> int:
        return db.query(Player).filter(Player.room_id == room_id).count()

    @staticmethod
    def get_session(db: Session, token: str) -> Optional[PlayerSession]:
        """Server-side lookup of a bearer token; None if unknown"""
        if not token:
            return None
        return db.query(PlayerSession).filter(
            PlayerSession.session_token == token
        ).first()

    @staticmethod
    def _issue_session(db: Session, room_id: str, player_id: str) -> str:
        token = generate_session_token()
        db.add(PlayerSession(session_token=token, player_id=player_id, room_id=room_id))
        return token
