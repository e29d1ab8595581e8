"""
Player API Endpoints

Responsibilities:
1. Join a room by code
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import PlayerJoin, PlayerJoinResponse
from core.room_manager import RoomManager
from core.exceptions import RoomNotFound, ValidationError

router = APIRouter(prefix="/api/rooms", tags=["players"])
logger = logging.getLogger(__name__)


@router.post("/{code}/join", response_model=PlayerJoinResponse)
def join_room(code: str, player_data: PlayerJoin, db: Session = Depends(get_db)):
    """
    Join a room (player endpoint)

    Preconditions:
    - room exists
    - room is WAITING (game not started)
    - room not full

    Flow:
    1. Find the room by code (case-insensitive)
    2. Check it accepts players
    3. Create the Player and its session
    4. Return ids and session token
    """
    try:
        room, player, token = RoomManager.join_room(db, code, player_data.player_name)

        return PlayerJoinResponse(
            room_id=room.id,
            player_id=player.id,
            session_token=token
        )

    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found. Check your code.")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to join room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")
