"""
Bid validation: structural and business checks before a bid is admitted
"""
import math
from numbers import Real
from typing import Optional

from models import Player, Room, RoomStatus
from core.exceptions import (
    BidAlreadySubmitted,
    InvalidBidAmount,
    PlayerEliminated,
    ValidationError,
)


def validate_bid(
    room: Room,
    player: Player,
    requested_amount,
    already_bid: bool,
    round_number: Optional[int] = None
) -> int:
    """
    Check a bid and return the amount that will actually be recorded.

    Rejects (ValidationError and subclasses):
    - room not in the bidding phase
    - player not a member of the room
    - player eliminated
    - player already bid this round
    - round_number given but not the room's current round
    - amount not a finite, non-negative number

    Returns:
        min(floor(requested_amount), player.capital)

    Example:
        capital 1000, requested 5000   -> 1000
        capital 1000, requested 250.9  -> 250
    """
    if room.status != RoomStatus.BIDDING:
        raise ValidationError("Room is not accepting bids")

    if player.room_id != room.id:
        raise ValidationError(f"Player {player.id} is not a member of this room")

    if player.is_eliminated:
        raise PlayerEliminated(f"Player {player.id} has been eliminated")

    if already_bid:
        raise BidAlreadySubmitted("Already bid this round")

    if round_number is not None and round_number != room.current_round:
        raise ValidationError(
            f"Bid is for round {round_number}, but round {room.current_round} is open"
        )

    # bool is a Real subclass; True is not a bid
    if isinstance(requested_amount, bool) or not isinstance(requested_amount, Real):
        raise InvalidBidAmount("Bid amount must be a number")
    if not math.isfinite(requested_amount) or requested_amount < 0:
        raise InvalidBidAmount("Bid amount must be a finite, non-negative number")

    return min(math.floor(requested_amount), player.capital)
