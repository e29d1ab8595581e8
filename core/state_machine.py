"""
Room state machine

    waiting -> bidding -> results -> bidding -> ... -> game_over

Every phase change goes through RoomStateMachine.transition(). The write is a
conditional update on the expected current status, so two racing callers
cannot both move the room out of the same phase.
"""
from typing import Any, Dict, Optional
import logging

from models import Room, RoomStatus
from core.exceptions import InvalidStateTransition
from core.store import GameStore

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    RoomStatus.WAITING: {RoomStatus.BIDDING},
    RoomStatus.BIDDING: {RoomStatus.RESULTS, RoomStatus.GAME_OVER},
    RoomStatus.RESULTS: {RoomStatus.BIDDING, RoomStatus.GAME_OVER},
    RoomStatus.GAME_OVER: set(),
}


def is_game_over(active_players: int, round_number: int, max_rounds: int) -> bool:
    """
    Game-over rule shared by resolution and advance-round.

    Over when at most one player is still solvent, or the last round
    has been played.
    """
    return active_players <= 1 or round_number >= max_rounds


class RoomStateMachine:

    @staticmethod
    def can_transition(current: RoomStatus, target: RoomStatus) -> bool:
        return target in ALLOWED_TRANSITIONS.get(current, set())

    @staticmethod
    def transition(
        store: GameStore,
        room_id: str,
        target: RoomStatus,
        fields: Optional[Dict[str, Any]] = None,
        *conditions
    ) -> Room:
        """
        Move a room to `target`, optionally writing extra fields in the same UPDATE.

        Parameters:
            store: GameStore
            room_id: Room id
            target: new status
            fields: extra columns to set alongside the status
            conditions: extra predicates the row must still satisfy

        Returns:
            the refreshed Room

        Raises:
            RoomNotFound: room does not exist
            InvalidStateTransition: transition not allowed, or the room
                changed under us before the update landed
        """
        room = store.get_room(room_id)
        current = room.status

        if not RoomStateMachine.can_transition(current, target):
            raise InvalidStateTransition(
                f"Cannot move room {room_id} from {current.value} to {target.value}"
            )

        values = dict(fields or {})
        values["status"] = target
        changed = store.conditional_update_room(
            room_id,
            values,
            Room.status == current,
            *conditions
        )
        if not changed:
            raise InvalidStateTransition(
                f"Room {room_id} changed concurrently; {current.value} -> {target.value} rejected"
            )

        store.log_event(room_id, "ROOM_STATE_CHANGED", {
            "from": current.value,
            "to": target.value,
        })
        logger.info(f"Room {room_id}: {current.value} -> {target.value}")

        return store.get_room(room_id)
