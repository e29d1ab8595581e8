"""Unit tests for services.bid_validator."""
import math

import pytest

from core.exceptions import (
    BidAlreadySubmitted,
    InvalidBidAmount,
    PlayerEliminated,
    ValidationError,
)
from models import Player, Room, RoomStatus
from services.bid_validator import validate_bid


def _room(status=RoomStatus.BIDDING, current_round=1) -> Room:
    return Room(id="room-1", code="ABCDEF", status=status, current_round=current_round)


def _player(capital=1000, eliminated=False, room_id="room-1") -> Player:
    return Player(id="player-1", room_id=room_id, player_name="P1",
                  capital=capital, is_eliminated=eliminated)


class TestClamping:
    def test_scenario_c_clamped_to_capital(self) -> None:
        assert validate_bid(_room(), _player(capital=1000), 5000, already_bid=False) == 1000

    def test_fraction_truncated(self) -> None:
        assert validate_bid(_room(), _player(), 250.9, already_bid=False) == 250

    def test_zero_allowed(self) -> None:
        assert validate_bid(_room(), _player(), 0, already_bid=False) == 0

    def test_within_capital_unchanged(self) -> None:
        assert validate_bid(_room(), _player(capital=700), 700, already_bid=False) == 700


class TestRejections:
    def test_not_bidding_phase(self) -> None:
        for status in (RoomStatus.WAITING, RoomStatus.RESULTS, RoomStatus.GAME_OVER):
            with pytest.raises(ValidationError):
                validate_bid(_room(status=status), _player(), 100, already_bid=False)

    def test_not_a_member(self) -> None:
        with pytest.raises(ValidationError):
            validate_bid(_room(), _player(room_id="other-room"), 100, already_bid=False)

    def test_eliminated(self) -> None:
        with pytest.raises(PlayerEliminated):
            validate_bid(_room(), _player(eliminated=True), 100, already_bid=False)

    def test_duplicate(self) -> None:
        with pytest.raises(BidAlreadySubmitted):
            validate_bid(_room(), _player(), 100, already_bid=True)

    def test_stale_round(self) -> None:
        with pytest.raises(ValidationError):
            validate_bid(_room(current_round=3), _player(), 100, already_bid=False, round_number=2)

    def test_matching_round_accepted(self) -> None:
        assert validate_bid(_room(current_round=3), _player(), 100,
                            already_bid=False, round_number=3) == 100

    @pytest.mark.parametrize("amount", [-1, -0.5, math.inf, -math.inf, math.nan])
    def test_non_finite_or_negative(self, amount) -> None:
        with pytest.raises(InvalidBidAmount):
            validate_bid(_room(), _player(), amount, already_bid=False)

    @pytest.mark.parametrize("amount", ["100", None, True, [100]])
    def test_not_a_number(self, amount) -> None:
        with pytest.raises(InvalidBidAmount):
            validate_bid(_room(), _player(), amount, already_bid=False)
