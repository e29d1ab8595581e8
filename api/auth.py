"""
Session authentication

Identity comes only from the bearer token, looked up server-side;
player ids in request bodies are never trusted.
"""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models import PlayerSession
from core.room_manager import RoomManager


def get_current_session(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db)
) -> PlayerSession:
    """FastAPI dependency: resolve `Authorization: Bearer <token>`"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing session token")

    token = authorization[len("Bearer "):].strip()
    session = RoomManager.get_session(db, token)
    if not session:
        raise HTTPException(status_code=401, detail="Invalid session token")
    return session


def require_room_session(room_id: str, session: PlayerSession) -> None:
    """A token only grants access to the room it was issued for"""
    if session.room_id != room_id:
        raise HTTPException(status_code=401, detail="Session does not belong to this room")
