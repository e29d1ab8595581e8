"""
Custom exceptions

All business errors live here so the API layer can map them uniformly:
- ValidationError   -> 400 (rejected action, no state change)
- NotFoundError     -> 404
- UnauthorizedError -> 403
- ConcurrencyLost   -> never surfaced; the losing caller just skips resolution
- StorageError      -> 500
"""


class BidGameException(Exception):
    """Base class for all game errors"""
    pass


# ============ Validation ============

class ValidationError(BidGameException):
    """Bad, duplicate or out-of-phase action"""
    pass


class InvalidStateTransition(ValidationError):
    """Illegal room phase transition"""
    pass


class InvalidPlayerCount(ValidationError):
    """Not enough players to start"""
    pass


class RoomNotAcceptingPlayers(ValidationError):
    """Room already started"""
    pass


class RoomFull(ValidationError):
    """Room reached its player limit"""
    pass


class InvalidPlayerName(ValidationError):
    pass


class BidAlreadySubmitted(ValidationError):
    """At most one bid per (room, player, round)"""
    pass


class PlayerEliminated(ValidationError):
    pass


class InvalidBidAmount(ValidationError):
    pass


# ============ Not found ============

class NotFoundError(BidGameException):
    pass


class RoomNotFound(NotFoundError):
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class PlayerNotFound(NotFoundError):
    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class RoundResultNotFound(NotFoundError):
    def __init__(self, room_id, round_number):
        self.room_id = room_id
        self.round_number = round_number
        super().__init__(f"No result for round {round_number} in room {room_id}")


# ============ Authorization ============

class UnauthorizedError(BidGameException):
    """Caller may not perform this action (e.g. non-host)"""
    pass


# ============ Concurrency / storage ============

class ConcurrencyLost(BidGameException):
    """Another caller already claimed resolution of this round"""
    def __init__(self, room_id, round_number):
        self.room_id = room_id
        self.round_number = round_number
        super().__init__(
            f"Resolution of round {round_number} in room {room_id} already claimed"
        )


class StorageError(BidGameException):
    """Backing store failure"""
    pass
