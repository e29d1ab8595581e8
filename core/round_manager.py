"""
Round Manager: bid intake, resolution trigger and round advancement

Responsibilities:
1. Admit a bid (validate, clamp, persist)
2. Resolution trigger: when every active player has bid, claim the round
   and run the resolver once
3. Advance to the next round (host only)
4. Read stored round results

Concurrency:
- "Everyone tries to resolve" instead of "the last bidder resolves":
  any submission that sees all bids in attempts the claim; the atomic
  marker update picks exactly one winner
- Losing the claim is not an error for the caller; their bid is already
  committed
"""
from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy.orm import Session

from models import Room, RoomStatus
from core.exceptions import (
    ConcurrencyLost,
    InvalidStateTransition,
    RoundResultNotFound,
    UnauthorizedError,
)
from core.locks import claim_round_resolution
from core.state_machine import RoomStateMachine, is_game_over
from core.store import GameStore
from services.bid_validator import validate_bid
from services.resolution_service import RoundResult, resolve_round
from services.state_service import bump_state_version

logger = logging.getLogger(__name__)


@dataclass
class BidOutcome:
    amount: int
    round_number: int
    all_bids_in: bool
    resolved: bool
    result: Optional[RoundResult] = None


@dataclass
class AdvanceOutcome:
    game_over: bool
    round_number: int


class RoundManager:
    """Round lifecycle manager"""

    @staticmethod
    def submit_bid(
        db: Session,
        room_id: str,
        player_id: str,
        amount,
        round_number: Optional[int] = None
    ) -> BidOutcome:
        """
        Submit a bid and, if it completes the round, try to resolve it.

        Flow:
        1. Load room and player
        2. Validate and clamp
        3. Insert and commit the bid
        4. Trigger: all active players bid? -> claim -> resolve

        Parameters:
            db: SQLAlchemy Session
            room_id: Room id
            player_id: caller's player id (from the verified session)
            amount: requested amount
            round_number: round the client believes is open (optional)

        Returns:
            BidOutcome

        Raises:
            RoomNotFound / PlayerNotFound
            ValidationError (and subclasses): bid rejected, nothing written
            StorageError
        """
        store = GameStore(db)

        # 1. Load
        room = store.get_room(room_id)
        player = store.get_player(player_id)
        current_round = room.current_round

        # 2. Validate
        already_bid = store.has_bid(room.id, player.id, current_round)
        clamped = validate_bid(room, player, amount, already_bid, round_number)

        # 3. Persist
        store.insert_bid(room.id, player.id, current_round, clamped)
        bump_state_version(db, room.id, reason="bid_submitted")
        store.commit()

        logger.info(
            f"Player {player.id} bid {clamped} (requested {amount}) "
            f"in round {current_round} of room {room.id}"
        )

        # 4. Trigger
        all_in = RoundManager.all_bids_in(store, room.id, current_round)
        result = None
        if all_in:
            try:
                result = RoundManager.try_finalize_round(db, room.id, current_round)
            except ConcurrencyLost:
                logger.info(
                    f"Round {current_round} in room {room.id} is being resolved by another request"
                )

        return BidOutcome(
            amount=clamped,
            round_number=current_round,
            all_bids_in=all_in,
            resolved=result is not None,
            result=result
        )

    @staticmethod
    def all_bids_in(store: GameStore, room_id: str, round_number: int) -> bool:
        """
        Has every non-eliminated player bid in this round?

        Both counts are plain snapshots and may be stale; the claim decides.
        """
        active = store.count_active_players(room_id)
        bids = store.count_bids(room_id, round_number)
        return active > 0 and bids >= active

    @staticmethod
    def try_finalize_round(db: Session, room_id: str, round_number: int) -> Optional[RoundResult]:
        """
        Claim and resolve a round.

        Safe to call from any number of concurrent requests: only the one
        that wins the claim runs the resolver.

        Returns:
            RoundResult from the resolver; None if the round had no bids or
            the room is no longer bidding on this round

        Raises:
            ConcurrencyLost: another request holds the claim
        """
        store = GameStore(db)
        claim_round_resolution(store, room_id, round_number)

        room = store.get_room(room_id)
        if room.status != RoomStatus.BIDDING or room.current_round != round_number:
            logger.warning(
                f"Skipping resolution of round {round_number} in room {room_id}: "
                f"room is {room.status.value} on round {room.current_round}"
            )
            return None

        return resolve_round(store, room, round_number)

    @staticmethod
    def advance_round(db: Session, room_id: str, player_id: str) -> AdvanceOutcome:
        """
        Host action: move from results to the next round's bidding.

        The game-over rule is re-checked first; if it holds the room goes to
        game_over instead (from results or bidding).

        Raises:
            RoomNotFound
            UnauthorizedError: caller is not the host
            InvalidStateTransition: wrong phase, or the round was already advanced
        """
        store = GameStore(db)
        room = store.get_room(room_id)

        if room.host_player_id != player_id:
            raise UnauthorizedError("Only the host can advance the round")

        if room.status not in (RoomStatus.RESULTS, RoomStatus.BIDDING):
            raise InvalidStateTransition(
                f"Cannot advance round while room is {room.status.value}"
            )

        current_round = room.current_round
        active = store.count_active_players(room.id)

        if is_game_over(active, current_round, room.max_rounds):
            RoomStateMachine.transition(store, room.id, RoomStatus.GAME_OVER)
            store.log_event(room.id, "GAME_OVER", {
                "round_number": current_round,
                "remaining_players": active,
            })
            bump_state_version(db, room.id, reason="game_over")
            store.commit()
            logger.info(f"Room {room_id} finished after round {current_round}")
            return AdvanceOutcome(game_over=True, round_number=current_round)

        if room.status != RoomStatus.RESULTS:
            raise InvalidStateTransition(
                f"Round {current_round} is still open for bids"
            )

        next_round = current_round + 1
        items = room.items or []
        next_item = items[next_round - 1] if next_round <= len(items) else None

        # Conditional on the round too: a double click must not skip a round
        RoomStateMachine.transition(
            store,
            room.id,
            RoomStatus.BIDDING,
            {"current_round": next_round, "current_item": next_item},
            Room.current_round == current_round
        )
        store.log_event(room.id, "ROUND_ADVANCED", {"round_number": next_round})
        bump_state_version(db, room.id, reason="round_advanced")
        store.commit()

        logger.info(f"Room {room_id} advanced to round {next_round}")
        return AdvanceOutcome(game_over=False, round_number=next_round)

    @staticmethod
    def get_round_result(db: Session, room_id: str, round_number: int) -> RoundResult:
        """
        Stored result of a resolved round.

        Raises:
            RoomNotFound
            RoundResultNotFound: round not resolved (yet)
        """
        store = GameStore(db)
        store.get_room(room_id)
        record = store.get_round_result(room_id, round_number)
        if not record:
            raise RoundResultNotFound(room_id, round_number)
        return RoundResult.from_record(record)
