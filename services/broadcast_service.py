"""
Round result broadcast

Fire-and-forget observer registry. Persisted state stays authoritative:
a subscriber that misses a payload can poll /state and the stored results.

The HTTP app registers no subscribers; clients follow rounds by polling
state_version on /state and reading /rounds/{n}/result. Subscribers are for
in-process consumers embedding the engine.
"""
import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Dict[str, Any]], None]


class RoundResultBroadcaster:
    """Per-room subscriber lists"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, room_id: str, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for a room.

        Returns:
            a function that removes the subscription
        """
        with self._lock:
            self._subscribers[room_id].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(room_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(room_id, None)

        return unsubscribe

    def publish(self, room_id: str, payload: Dict[str, Any]) -> int:
        """
        Deliver a payload to every subscriber of the room.

        A failing subscriber is logged and skipped; delivery is best-effort.

        Returns:
            number of subscribers that received the payload
        """
        with self._lock:
            callbacks = list(self._subscribers.get(room_id, []))

        delivered = 0
        for callback in callbacks:
            try:
                callback(room_id, payload)
                delivered += 1
            except Exception:
                logger.warning(
                    "Round result subscriber failed for room %s", room_id, exc_info=True
                )
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()


broadcaster = RoundResultBroadcaster()
