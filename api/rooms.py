"""
Room API Endpoints

Responsibilities:
1. Create a room (host)
2. Start the game (host)
3. Room state snapshot for short polling
4. Leaderboard and round history
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models import PlayerSession
from schemas import (
    RoomCreate,
    RoomCreateResponse,
    RoomStateResponse,
    PlayerResponse,
    StatusResponse,
    LeaderboardEntry,
    RoundResultResponse,
)
from api.auth import get_current_session, require_room_session
from core.room_manager import RoomManager
from core.store import GameStore
from core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from services.history_service import get_leaderboard, get_round_history

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


@router.post("", response_model=RoomCreateResponse)
def create_room(room_data: RoomCreate, db: Session = Depends(get_db)):
    """
    Create a room; the caller becomes its host.

    Returns:
        - room_id, room_code
        - player_id: the host's player id
        - session_token: bearer token for later calls
    """
    try:
        room, host, token = RoomManager.create_room(
            db, room_data.player_name, room_data.max_rounds
        )
        return RoomCreateResponse(
            room_id=room.id,
            room_code=room.code,
            player_id=host.id,
            session_token=token
        )

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/state", response_model=RoomStateResponse)
def get_room_state(room_id: str, db: Session = Depends(get_db)):
    """
    Room snapshot for short polling.

    Clients compare state_version with what they last saw and refetch
    results/leaderboard when it moves.
    """
    try:
        store = GameStore(db)
        room = store.get_room(room_id)
        players = store.list_players(room_id)

        return RoomStateResponse(
            room_id=room.id,
            room_code=room.code,
            status=room.status,
            current_round=room.current_round,
            max_rounds=room.max_rounds,
            current_item=room.current_item,
            host_player_id=room.host_player_id,
            state_version=room.state_version,
            players=[PlayerResponse.model_validate(p) for p in players]
        )

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to get room state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/start", response_model=StatusResponse)
def start_game(
    room_id: str,
    session: PlayerSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Start the game (host endpoint)

    Preconditions:
    - room is WAITING
    - caller is the host
    - at least 2 players
    """
    require_room_session(room_id, session)
    try:
        RoomManager.start_game(db, room_id, session.player_id)
        return StatusResponse(status="ok")

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except UnauthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start game: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/leaderboard", response_model=List[LeaderboardEntry])
def leaderboard(room_id: str, db: Session = Depends(get_db)):
    try:
        return [LeaderboardEntry(**entry) for entry in get_leaderboard(room_id, db)]

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to get leaderboard: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/history", response_model=List[RoundResultResponse])
def history(room_id: str, db: Session = Depends(get_db)):
    """Every resolved round so far, in order"""
    try:
        return [
            RoundResultResponse(**result.to_payload())
            for result in get_round_history(room_id, db)
        ]

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to get history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
