"""
Round resolution: settle one round's bids against the item price

Precondition: the caller holds the round's resolution claim
(core.locks.claim_round_resolution). Nothing here re-checks bid
completeness; the claim is the single point of truth.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
import logging

from models import Room, RoomStatus, RoundResultRecord
from core.state_machine import RoomStateMachine, is_game_over
from core.store import GameStore
from services.ledger_service import apply_ledger
from services.state_service import bump_state_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedBid:
    player_id: str
    player_name: str
    amount: int


@dataclass(frozen=True)
class RoundResult:
    room_id: str
    round_number: int
    item: Dict[str, Any]
    bids: List[RankedBid]
    winner_id: str
    winner_name: str
    winner_bid: int
    winner_gain: int
    eliminated: List[str] = field(default_factory=list)
    game_over: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: RoundResultRecord) -> "RoundResult":
        return cls(
            room_id=record.room_id,
            round_number=record.round_number,
            item=record.item,
            bids=[RankedBid(**bid) for bid in record.bids],
            winner_id=record.winner_id,
            winner_name=record.winner_name,
            winner_bid=record.winner_bid,
            winner_gain=record.winner_gain,
            eliminated=list(record.eliminated or []),
            game_over=record.game_over
        )


def round_item(room: Room, round_number: int) -> Optional[Dict[str, Any]]:
    """The item drawn for a round; falls back to the room's current item"""
    items = room.items or []
    if 0 < round_number <= len(items):
        return items[round_number - 1]
    return room.current_item


def resolve_round(store: GameStore, room: Room, round_number: int) -> Optional[RoundResult]:
    """
    Settle a round exactly once.

    Flow:
    1. Read bids, highest first (ties: first submitted)
    2. Apply the capital ledger
    3. Persist capital and elimination flags for every bidder
    4. Decide game over (active players <= 1 or last round)
    5. Store the result record, move the room to results/game_over, commit
    6. Publish the result to subscribers (best effort)

    Returns:
        RoundResult, or None if the round has no bids (nothing is written)

    Note:
        Player updates are not one atomic batch. A crash between steps 3
        and 5 leaves the round claimed but unresolved; there is no
        automatic repair.
    """
    bids = store.list_bids(room.id, round_number)
    if not bids:
        logger.warning(f"Round {round_number} in room {room.id} has no bids; skipping resolution")
        return None

    item = round_item(room, round_number)
    if item is None:
        logger.warning(f"Round {round_number} in room {room.id} has no item; skipping resolution")
        return None

    players = {player.id: player for player in store.list_players(room.id)}

    # 1-2. Settle
    entries = apply_ledger(
        item["price"],
        [(bid.player_id, bid.amount) for bid in bids],
        {bid.player_id: players[bid.player_id].capital for bid in bids}
    )

    # 3. Persist; elimination is sticky
    eliminated_names: List[str] = []
    for player_id, entry in entries.items():
        player = players[player_id]
        now_eliminated = player.is_eliminated or entry.eliminated
        if now_eliminated and not player.is_eliminated:
            eliminated_names.append(player.player_name)
        store.update_player(player_id, {
            "capital": entry.new_capital,
            "is_eliminated": now_eliminated,
        })

    ranked = [
        RankedBid(
            player_id=bid.player_id,
            player_name=players[bid.player_id].player_name,
            amount=bid.amount
        )
        for bid in bids
    ]
    winner = ranked[0]
    winner_gain = entries[winner.player_id].delta

    # 4. Game over?
    remaining = store.count_active_players(room.id)
    game_over = is_game_over(remaining, round_number, room.max_rounds)

    result = RoundResult(
        room_id=room.id,
        round_number=round_number,
        item=item,
        bids=ranked,
        winner_id=winner.player_id,
        winner_name=winner.player_name,
        winner_bid=winner.amount,
        winner_gain=winner_gain,
        eliminated=eliminated_names,
        game_over=game_over
    )

    # 5. Record and transition
    store.save_round_result(RoundResultRecord(
        room_id=room.id,
        round_number=round_number,
        item=item,
        bids=[asdict(bid) for bid in ranked],
        winner_id=result.winner_id,
        winner_name=result.winner_name,
        winner_bid=result.winner_bid,
        winner_gain=result.winner_gain,
        eliminated=eliminated_names,
        game_over=game_over
    ))
    RoomStateMachine.transition(
        store,
        room.id,
        RoomStatus.GAME_OVER if game_over else RoomStatus.RESULTS
    )
    store.log_event(room.id, "ROUND_RESOLVED", {
        "round_number": round_number,
        "winner_id": result.winner_id,
        "winner_gain": winner_gain,
        "eliminated": eliminated_names,
    })
    if game_over:
        store.log_event(room.id, "GAME_OVER", {
            "round_number": round_number,
            "remaining_players": remaining,
        })
    bump_state_version(store.db, room.id, reason="round_resolved")
    store.commit()

    logger.info(
        f"Resolved round {round_number} in room {room.id}: winner {winner.player_id} "
        f"bid {winner.amount}, gain {winner_gain}, eliminated {eliminated_names}, "
        f"game_over={game_over}"
    )

    # 6. Notify
    store.publish_round_result(room.id, result.to_payload())

    return result
