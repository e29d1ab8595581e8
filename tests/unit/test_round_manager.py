"""Unit tests for the resolution trigger, resolver and round advancement."""
import pytest

from core.exceptions import (
    BidAlreadySubmitted,
    ConcurrencyLost,
    InvalidStateTransition,
    RoundResultNotFound,
    UnauthorizedError,
    ValidationError,
)
from core.locks import claim_round_resolution
from core.round_manager import RoundManager
from core.store import GameStore
from models import Bid, EventLog, Player, Room, RoomStatus, RoundResultRecord
from services.broadcast_service import broadcaster
from services.resolution_service import resolve_round


def _place_bids(db, room, players, amounts, round_number=1):
    for player, amount in zip(players, amounts):
        db.add(Bid(room_id=room.id, player_id=player.id, round_number=round_number, amount=amount))
    db.commit()


def _capital(db, player):
    db.expire_all()
    return db.query(Player).filter(Player.id == player.id).one().capital


class TestClaim:
    def test_first_claim_wins(self, db, room_factory) -> None:
        room, _ = room_factory([1000, 1000])
        store = GameStore(db)

        claim_round_resolution(store, room.id, 1)

        assert store.get_room(room.id).last_resolved_round == 1

    def test_second_claim_loses(self, db, room_factory) -> None:
        room, _ = room_factory([1000, 1000])
        store = GameStore(db)
        claim_round_resolution(store, room.id, 1)

        with pytest.raises(ConcurrencyLost):
            claim_round_resolution(store, room.id, 1)

    def test_older_round_cannot_be_claimed(self, db, room_factory) -> None:
        room, _ = room_factory([1000, 1000], current_round=3)
        store = GameStore(db)
        claim_round_resolution(store, room.id, 3)

        with pytest.raises(ConcurrencyLost):
            claim_round_resolution(store, room.id, 2)
        assert store.get_room(room.id).last_resolved_round == 3


class TestResolveRound:
    def test_scenario_a(self, db, room_factory) -> None:
        room, (p1, p2, p3) = room_factory([1000, 1000, 1000], price=1000)
        _place_bids(db, room, [p1, p2, p3], [500, 300, 900])

        result = resolve_round(GameStore(db), room, 1)

        assert result.winner_id == p3.id
        assert result.winner_bid == 900
        assert result.winner_gain == 100
        assert [bid.player_id for bid in result.bids] == [p3.id, p1.id, p2.id]
        assert _capital(db, p3) == 1100
        assert _capital(db, p1) == 500
        assert _capital(db, p2) == 700
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.RESULTS
        assert not result.game_over

    def test_scenario_b_overbid_winner(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([2000, 1000], price=1000)
        _place_bids(db, room, [p1, p2], [1500, 100])

        result = resolve_round(GameStore(db), room, 1)

        assert result.winner_id == p1.id
        assert result.winner_gain == -500
        assert _capital(db, p1) == 1500
        assert _capital(db, p2) == 900

    def test_tie_goes_to_first_submission(self, db, room_factory) -> None:
        room, (p1, p2, p3) = room_factory([1000, 1000, 1000])
        _place_bids(db, room, [p2, p1, p3], [600, 600, 100])

        result = resolve_round(GameStore(db), room, 1)

        assert result.winner_id == p2.id

    def test_elimination_and_game_over(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 400], price=1000)
        _place_bids(db, room, [p1, p2], [500, 400])

        result = resolve_round(GameStore(db), room, 1)

        assert result.eliminated == ["P2"]
        assert result.game_over
        db.expire_all()
        assert db.query(Player).filter(Player.id == p2.id).one().is_eliminated
        room_row = db.query(Room).filter(Room.id == room.id).one()
        assert room_row.status == RoomStatus.GAME_OVER
        events = [e.event_type for e in db.query(EventLog).filter(EventLog.room_id == room.id)]
        assert "GAME_OVER" in events

    def test_last_round_ends_game(self, db, room_factory) -> None:
        room, players = room_factory([1000, 1000, 1000], current_round=3, max_rounds=3)
        _place_bids(db, room, players, [10, 20, 30], round_number=3)

        result = resolve_round(GameStore(db), room, 3)

        assert result.game_over
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.GAME_OVER

    def test_elimination_is_sticky(self, db, room_factory) -> None:
        room, (p1, p2, p3) = room_factory([1000, 1000, 300])
        _place_bids(db, room, [p1, p2, p3], [100, 50, 300])
        resolve_round(GameStore(db), room, 1)

        db.expire_all()
        assert db.query(Player).filter(Player.id == p3.id).one().is_eliminated is False

        room, (q1, q2, q3) = room_factory([1000, 1000, 200])
        _place_bids(db, room, [q1, q2, q3], [500, 100, 200])
        resolve_round(GameStore(db), room, 1)
        assert db.query(Player).filter(Player.id == q3.id).one().is_eliminated

        # Round 2 without the eliminated player
        GameStore(db).update_room(room.id, {"status": RoomStatus.BIDDING, "current_round": 2})
        db.commit()
        _place_bids(db, room, [q1, q2], [100, 50], round_number=2)
        result = resolve_round(GameStore(db), db.query(Room).filter(Room.id == room.id).one(), 2)

        db.expire_all()
        assert db.query(Player).filter(Player.id == q3.id).one().is_eliminated
        assert result.eliminated == []

    def test_no_bids_is_noop(self, db, room_factory) -> None:
        room, players = room_factory([1000, 1000])

        assert resolve_round(GameStore(db), room, 1) is None

        db.expire_all()
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.BIDDING
        assert all(_capital(db, p) == 1000 for p in players)
        assert db.query(RoundResultRecord).count() == 0

    def test_result_stored_and_published(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000])
        _place_bids(db, room, [p1, p2], [300, 200])
        received = []
        broadcaster.subscribe(room.id, lambda room_id, payload: received.append(payload))

        resolve_round(GameStore(db), room, 1)

        record = db.query(RoundResultRecord).filter(RoundResultRecord.room_id == room.id).one()
        assert record.winner_id == p1.id
        assert record.bids[0] == {"player_id": p1.id, "player_name": "P1", "amount": 300}
        assert len(received) == 1
        assert received[0]["winner_gain"] == 700
        assert received[0]["round_number"] == 1

    def test_failing_subscriber_does_not_break_resolution(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000])
        _place_bids(db, room, [p1, p2], [300, 200])

        def broken(room_id, payload):
            raise RuntimeError("subscriber down")

        broadcaster.subscribe(room.id, broken)

        result = resolve_round(GameStore(db), room, 1)

        assert result is not None
        assert _capital(db, p1) == 1700


class TestTryFinalizeRound:
    def test_scenario_d_second_caller_skips(self, session_factory, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000], price=1000)
        first, second = session_factory(), session_factory()
        try:
            first.add(Bid(room_id=room.id, player_id=p1.id, round_number=1, amount=400))
            first.commit()
            second.add(Bid(room_id=room.id, player_id=p2.id, round_number=1, amount=600))
            second.commit()

            # Both submissions observe "all bids in"
            assert RoundManager.all_bids_in(GameStore(first), room.id, 1)
            assert RoundManager.all_bids_in(GameStore(second), room.id, 1)

            result = RoundManager.try_finalize_round(first, room.id, 1)
            with pytest.raises(ConcurrencyLost):
                RoundManager.try_finalize_round(second, room.id, 1)

            assert result.winner_id == p2.id
            assert second.query(Bid).filter(Bid.room_id == room.id).count() == 2
            second.expire_all()
            assert second.query(Player).filter(Player.id == p1.id).one().capital == 600
            assert second.query(Player).filter(Player.id == p2.id).one().capital == 1400
            assert second.query(RoundResultRecord).count() == 1
        finally:
            first.close()
            second.close()

    def test_repeated_attempts_apply_capital_once(self, db, session_factory, room_factory) -> None:
        room, (p1, p2, p3) = room_factory([1000, 1000, 1000])
        _place_bids(db, room, [p1, p2, p3], [500, 300, 900])

        outcomes = []
        for _ in range(5):
            session = session_factory()
            try:
                outcomes.append(RoundManager.try_finalize_round(session, room.id, 1))
            except ConcurrencyLost:
                outcomes.append("lost")
            finally:
                session.close()

        assert sum(1 for o in outcomes if o != "lost") == 1
        assert _capital(db, p3) == 1100
        assert _capital(db, p1) == 500
        assert _capital(db, p2) == 700

    def test_room_ended_before_last_bid_is_left_untouched(self, db, room_factory) -> None:
        room, (host, p2) = room_factory([1000, 1000], current_round=3, max_rounds=3)
        RoundManager.submit_bid(db, room.id, host.id, 400)
        RoundManager.advance_round(db, room.id, host.id)

        # A bid validated before the game ended lands afterwards
        _place_bids(db, room, [p2], [600], round_number=3)

        assert RoundManager.try_finalize_round(db, room.id, 3) is None
        assert _capital(db, host) == 1000
        assert _capital(db, p2) == 1000
        assert db.query(RoundResultRecord).count() == 0
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.GAME_OVER


class TestSubmitBid:
    def test_partial_round_does_not_resolve(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000])

        outcome = RoundManager.submit_bid(db, room.id, p1.id, 250)

        assert outcome.amount == 250
        assert not outcome.all_bids_in
        assert not outcome.resolved
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.BIDDING

    def test_last_bid_resolves(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000])
        RoundManager.submit_bid(db, room.id, p1.id, 250)

        outcome = RoundManager.submit_bid(db, room.id, p2.id, 5000)

        assert outcome.amount == 1000
        assert outcome.all_bids_in
        assert outcome.resolved
        assert outcome.result.winner_id == p2.id
        assert outcome.result.winner_gain == 0
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.RESULTS

    def test_lost_claim_still_records_bid(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000])
        RoundManager.submit_bid(db, room.id, p1.id, 100)
        # Another request already claimed the round
        GameStore(db).update_room(room.id, {"last_resolved_round": 1})
        db.commit()

        outcome = RoundManager.submit_bid(db, room.id, p2.id, 200)

        assert outcome.all_bids_in
        assert not outcome.resolved
        assert db.query(Bid).filter(Bid.room_id == room.id).count() == 2

    def test_duplicate_bid_rejected(self, db, room_factory) -> None:
        room, (p1, p2, p3) = room_factory([1000, 1000, 1000])
        RoundManager.submit_bid(db, room.id, p1.id, 100)

        with pytest.raises(BidAlreadySubmitted):
            RoundManager.submit_bid(db, room.id, p1.id, 200)
        assert db.query(Bid).filter(Bid.player_id == p1.id).one().amount == 100

    def test_store_unique_constraint_backstops_duplicates(self, db, room_factory) -> None:
        room, (p1, _) = room_factory([1000, 1000])
        store = GameStore(db)
        store.insert_bid(room.id, p1.id, 1, 100)
        store.commit()

        with pytest.raises(BidAlreadySubmitted):
            store.insert_bid(room.id, p1.id, 1, 300)

    def test_bid_after_game_over_rejected(self, db, room_factory) -> None:
        room, (p1, _) = room_factory([1000, 1000], status=RoomStatus.GAME_OVER)
        with pytest.raises(ValidationError):
            RoundManager.submit_bid(db, room.id, p1.id, 100)


class TestAdvanceRound:
    def test_non_host_rejected(self, db, room_factory) -> None:
        room, (_, p2) = room_factory([1000, 1000], status=RoomStatus.RESULTS)
        with pytest.raises(UnauthorizedError):
            RoundManager.advance_round(db, room.id, p2.id)

    def test_advances_to_next_item(self, db, room_factory) -> None:
        room, (host, _) = room_factory([1000, 1000], status=RoomStatus.RESULTS)

        outcome = RoundManager.advance_round(db, room.id, host.id)

        assert not outcome.game_over
        assert outcome.round_number == 2
        room_row = db.query(Room).filter(Room.id == room.id).one()
        assert room_row.status == RoomStatus.BIDDING
        assert room_row.current_round == 2
        assert room_row.current_item == room_row.items[1]

    def test_double_advance_rejected(self, db, room_factory) -> None:
        room, (host, _) = room_factory([1000, 1000], status=RoomStatus.RESULTS)
        RoundManager.advance_round(db, room.id, host.id)

        with pytest.raises(InvalidStateTransition):
            RoundManager.advance_round(db, room.id, host.id)
        assert db.query(Room).filter(Room.id == room.id).one().current_round == 2

    def test_last_round_goes_to_game_over(self, db, room_factory) -> None:
        room, (host, _) = room_factory([1000, 1000], status=RoomStatus.RESULTS,
                                       current_round=5, max_rounds=5)

        outcome = RoundManager.advance_round(db, room.id, host.id)

        assert outcome.game_over
        assert db.query(Room).filter(Room.id == room.id).one().status == RoomStatus.GAME_OVER

    def test_open_round_cannot_be_skipped(self, db, room_factory) -> None:
        room, (host, _) = room_factory([1000, 1000], status=RoomStatus.BIDDING)
        with pytest.raises(InvalidStateTransition):
            RoundManager.advance_round(db, room.id, host.id)

    def test_bidding_room_with_one_survivor_ends(self, db, room_factory) -> None:
        room, (host, p2) = room_factory([1000, 0], status=RoomStatus.BIDDING)
        GameStore(db).update_player(p2.id, {"is_eliminated": True})
        db.commit()

        outcome = RoundManager.advance_round(db, room.id, host.id)

        assert outcome.game_over

    def test_game_over_is_terminal(self, db, room_factory) -> None:
        room, (host, _) = room_factory([1000, 1000], status=RoomStatus.GAME_OVER)
        with pytest.raises(InvalidStateTransition):
            RoundManager.advance_round(db, room.id, host.id)


class TestGetRoundResult:
    def test_missing_result(self, db, room_factory) -> None:
        room, _ = room_factory([1000, 1000])
        with pytest.raises(RoundResultNotFound):
            RoundManager.get_round_result(db, room.id, 1)

    def test_roundtrip_from_record(self, db, room_factory) -> None:
        room, (p1, p2) = room_factory([1000, 1000])
        _place_bids(db, room, [p1, p2], [300, 200])
        resolved = resolve_round(GameStore(db), room, 1)

        assert RoundManager.get_round_result(db, room.id, 1) == resolved
