"""
Concurrency control

Two tools:
- with_room_lock(): SELECT ... FOR UPDATE row lock (pessimistic), used for
  low-traffic host actions such as starting a game
- claim_round_resolution(): atomic compare-and-set on the room's
  last_resolved_round marker; the only coordination between concurrent bid
  submissions
"""
from sqlalchemy.orm import Session, Query
import logging

from models import Room
from core.exceptions import ConcurrencyLost
from core.store import GameStore

logger = logging.getLogger(__name__)


def with_room_lock(room_id: str, db: Session) -> Query:
    """
    Row-lock a Room for the rest of the transaction.

    Example:
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

    Note:
        - nowait=False waits for the lock instead of failing
        - SQLite has no FOR UPDATE; the clause is dropped there and the
          database-level write lock serializes instead
    """
    return db.query(Room).filter(
        Room.id == room_id
    ).with_for_update(nowait=False)


def claim_round_resolution(store: GameStore, room_id: str, round_number: int) -> None:
    """
    Take exclusive resolution rights for a round.

    UPDATE rooms SET last_resolved_round = :round
    WHERE id = :room_id AND last_resolved_round < :round

    Exactly one concurrent caller sees a row count of 1. The claim is
    committed at once so every other request observes it.

    Raises:
        ConcurrencyLost: someone else already holds the claim
    """
    claimed = store.conditional_update_room(
        room_id,
        {"last_resolved_round": round_number},
        Room.last_resolved_round < round_number
    )
    # Commit either way: releases the write lock a losing UPDATE may hold
    store.commit()

    if not claimed:
        logger.info(f"Lost resolution claim for round {round_number} in room {room_id}")
        raise ConcurrencyLost(room_id, round_number)

    logger.info(f"Claimed resolution of round {round_number} in room {room_id}")
