from datetime import timedelta
from decimal import Decimal

import pytest

from core import error_codes
from wingo.models import Bet, GameRound
from wingo.window import check_betting_window

pytestmark = pytest.mark.django_db


def test_accepts_bet_early_in_round(user, live_round):
    result = check_betting_window(live_round, user, Decimal("10"), live_round.start_time, Decimal("1000"))
    assert result


def test_rejects_without_live_round(user):
    result = check_betting_window(None, user, Decimal("10"), None, Decimal("1000"))
    assert result.error_code == error_codes.NO_LIVE_ROUND


def test_rejects_completed_round(user, live_round):
    live_round.status = GameRound.COMPLETED
    result = check_betting_window(live_round, user, Decimal("10"), live_round.start_time, Decimal("1000"))
    assert result.error_code == error_codes.NO_LIVE_ROUND


@pytest.mark.parametrize("seconds_left", [29, 10, 0, -5])
def test_rejects_inside_closing_window(user, live_round, seconds_left):
    now = live_round.end_time - timedelta(seconds=seconds_left)
    result = check_betting_window(live_round, user, Decimal("10"), now, Decimal("1000"))
    assert result.error_code == error_codes.BETTING_CLOSED


def test_closing_window_wins_over_bad_amount(user, live_round):
    now = live_round.end_time - timedelta(seconds=5)
    result = check_betting_window(live_round, user, Decimal("999999"), now, Decimal("0"))
    assert result.error_code == error_codes.BETTING_CLOSED


def test_exactly_thirty_seconds_left_is_open(user, live_round):
    now = live_round.end_time - timedelta(seconds=30)
    assert check_betting_window(live_round, user, Decimal("10"), now, Decimal("1000"))


def test_rejects_second_bet(user, live_round):
    Bet.objects.create(user=user, round=live_round, color="red", amount=Decimal("5"))
    result = check_betting_window(live_round, user, Decimal("10"), live_round.start_time, Decimal("1000"))
    assert result.error_code == error_codes.ALREADY_BET


@pytest.mark.parametrize(
    "amount, balance, code",
    [
        ("0.50", "1000", error_codes.VALIDATION_ERROR),
        ("0", "1000", error_codes.VALIDATION_ERROR),
        ("1000.01", "1000", error_codes.INSUFFICIENT_FUNDS),
    ],
)
def test_rejects_bad_amounts(user, live_round, amount, balance, code):
    result = check_betting_window(live_round, user, Decimal(amount), live_round.start_time, Decimal(balance))
    assert result.error_code == code
