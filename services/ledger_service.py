"""
Capital ledger: pure bid settlement arithmetic

The highest bidder takes the item and gains (price - bid); every other
bidder forfeits their bid. No I/O, no state.
"""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

BidPair = Tuple[str, int]


@dataclass(frozen=True)
class LedgerEntry:
    player_id: str
    bid_amount: int
    old_capital: int
    delta: int
    new_capital: int
    eliminated: bool
    is_winner: bool


def rank_bids(bids: Sequence[BidPair]) -> List[BidPair]:
    """
    Order (player_id, amount) pairs highest first.

    sorted() is stable, so equal amounts keep their input order and the
    first-seen bid wins the tie.
    """
    return sorted(bids, key=lambda pair: pair[1], reverse=True)


def compute_deltas(item_price: int, bids: Sequence[BidPair]) -> Dict[str, int]:
    """
    Signed capital change per player for one round.

    Rules:
    - winner (highest bid): item_price - bid
      negative when the winner overbid the market price
    - everyone else: -bid

    Example:
        price 1000, bids P1=500, P2=300, P3=900
        -> P3: +100, P1: -500, P2: -300
    """
    ranked = rank_bids(bids)
    if not ranked:
        return {}

    winner_id, winner_bid = ranked[0]
    deltas = {winner_id: item_price - winner_bid}
    for player_id, amount in ranked[1:]:
        deltas[player_id] = -amount
    return deltas


def apply_ledger(
    item_price: int,
    bids: Sequence[BidPair],
    capitals: Mapping[str, int]
) -> Dict[str, LedgerEntry]:
    """
    Apply a round's deltas to current capitals.

    Parameters:
        item_price: the item's market value
        bids: (player_id, amount) pairs, in submission order
        capitals: player_id -> capital before the round

    Returns:
        player_id -> LedgerEntry, in ranked order;
        eliminated is True when new capital <= 0
    """
    ranked = rank_bids(bids)
    deltas = compute_deltas(item_price, ranked)
    winner_id = ranked[0][0] if ranked else None

    entries: Dict[str, LedgerEntry] = {}
    for player_id, amount in ranked:
        old_capital = capitals[player_id]
        new_capital = old_capital + deltas[player_id]
        entries[player_id] = LedgerEntry(
            player_id=player_id,
            bid_amount=amount,
            old_capital=old_capital,
            delta=deltas[player_id],
            new_capital=new_capital,
            eliminated=new_capital <= 0,
            is_winner=player_id == winner_id
        )
    return entries
