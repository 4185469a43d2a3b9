from datetime import timedelta
from decimal import Decimal

from django.conf import settings

from core import error_codes
from core.result import Result

from .models import Bet, GameRound

MIN_BET_AMOUNT = Decimal("1")


def close_before_end() -> timedelta:
    return timedelta(seconds=settings.WINGO_BET_CLOSE_BEFORE_END)


def check_betting_window(round_obj, user, amount, now, balance) -> Result:
    """
    Decide whether ``user`` may stake ``amount`` on ``round_obj`` at ``now``.
    Reads only; the write path re-checks everything against the database.
    """
    if round_obj is None or round_obj.status != GameRound.LIVE:
        return Result.fail("No active round", code=error_codes.NO_LIVE_ROUND)

    if round_obj.end_time - now < close_before_end():
        return Result.fail("Betting is closed for this round", code=error_codes.BETTING_CLOSED)

    if Bet.objects.filter(user=user, round=round_obj).exists():
        return Result.fail("You have already placed a bet in this round", code=error_codes.ALREADY_BET)

    amount = Decimal(amount)
    if amount < MIN_BET_AMOUNT:
        return Result.fail("Minimum bet amount is 1", code=error_codes.VALIDATION_ERROR)

    if amount > Decimal(balance):
        return Result.fail("Insufficient balance", code=error_codes.INSUFFICIENT_FUNDS)

    return Result.ok()
