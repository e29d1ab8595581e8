"""
Room history and leaderboard.

Built from persisted results and player capital so clients that missed a
broadcast can rebuild the full picture by polling.
"""
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from core.store import GameStore
from services.resolution_service import RoundResult


def get_round_history(room_id: str, db: Session) -> List[RoundResult]:
    """All resolved rounds of a room, in round order."""
    store = GameStore(db)
    store.get_room(room_id)
    return [RoundResult.from_record(record) for record in store.list_round_results(room_id)]


def get_leaderboard(room_id: str, db: Session) -> List[Dict[str, Any]]:
    """
    Players ranked by capital, highest first.

    Equal capital shares a rank (1, 2, 2, 4). Eliminated players stay on
    the board so the final standings show everyone.
    """
    store = GameStore(db)
    store.get_room(room_id)
    players = sorted(store.list_players(room_id), key=lambda p: p.capital, reverse=True)

    leaderboard: List[Dict[str, Any]] = []
    for index, player in enumerate(players):
        if index > 0 and player.capital == players[index - 1].capital:
            rank = leaderboard[-1]["rank"]
        else:
            rank = index + 1
        leaderboard.append({
            "rank": rank,
            "player_id": player.id,
            "player_name": player.player_name,
            "capital": player.capital,
            "is_eliminated": player.is_eliminated,
        })
    return leaderboard
