"""
State version: a per-room counter bumped on every visible change.

Clients short-poll GET /state and refetch details when the version moves.
"""
import logging

from sqlalchemy.orm import Session

from models import Room

logger = logging.getLogger(__name__)


def bump_state_version(db: Session, room_id: str, reason: str) -> None:
    """Increment Room.state_version in SQL (no read-modify-write in Python)"""
    db.query(Room).filter(Room.id == room_id).update(
        {"state_version": Room.state_version + 1},
        synchronize_session=False
    )
    logger.debug(f"State version bumped for room {room_id} ({reason})")
