import logging
import secrets
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from core import error_codes
from core.result import Result
from wallets.models import WalletTransaction
from wallets.services import InsufficientFunds, apply_delta, get_balance, record_transaction

from .models import COLORS, Bet, GameRound
from .window import check_betting_window, close_before_end

logger = logging.getLogger(__name__)


class _WindowClosed(Exception):
    pass


# ======================================================
# ROUNDS
# ======================================================
def generate_round_id(now=None) -> str:
    now = now or timezone.now()
    return f"G{int(now.timestamp() * 1000)}{secrets.token_hex(3).upper()}"


def current_live_round():
    return GameRound.objects.filter(status=GameRound.LIVE).first()


def open_round(now=None) -> GameRound:
    """
    Start a live round running for WINGO_ROUND_DURATION seconds from ``now``.
    If another worker got there first, their round is returned instead.
    """
    now = now or timezone.now()
    try:
        with transaction.atomic():
            round_obj = GameRound.objects.create(
                round_id=generate_round_id(now),
                start_time=now,
                end_time=now + timedelta(seconds=settings.WINGO_ROUND_DURATION),
                status=GameRound.LIVE,
            )
    except IntegrityError:
        logger.debug("Live round already exists, reusing it")
        return current_live_round()

    logger.info("Opened round %s (ends %s)", round_obj.round_id, round_obj.end_time.isoformat())
    return round_obj


def ensure_live_round(now=None) -> GameRound:
    return current_live_round() or open_round(now)


# ======================================================
# BETS
# ======================================================
def _replayed_bet(reference):
    tx = WalletTransaction.objects.filter(reference=reference).first()
    if tx is None:
        return None
    return Bet.objects.filter(pk=tx.meta.get("bet_id")).select_related("round").first()


def place_bet(user, color: str, amount, idempotency_key: str = None, now=None) -> Result:
    """
    Stake ``amount`` on ``color`` in the live round.

    Debit, bet row, exposure increment and ledger entry commit together or
    not at all. With an ``idempotency_key`` a retried request returns the
    bet created by the first attempt.
    """
    if color not in COLORS:
        return Result.fail("Invalid color", code=error_codes.VALIDATION_ERROR)
    try:
        amount = Decimal(str(amount))
    except InvalidOperation:
        return Result.fail("Invalid amount", code=error_codes.VALIDATION_ERROR)
    # stored with two decimal places; anything finer would not match the ledger
    if not amount.is_finite() or amount != amount.quantize(Decimal("0.01")):
        return Result.fail("Invalid amount", code=error_codes.VALIDATION_ERROR)

    now = now or timezone.now()
    reference = f"bet:{user.pk}:{idempotency_key}" if idempotency_key else None

    if reference:
        replayed = _replayed_bet(reference)
        if replayed is not None:
            return Result.ok(replayed)

    round_obj = current_live_round()
    check = check_betting_window(round_obj, user, amount, now, get_balance(user))
    if not check:
        return check

    try:
        with transaction.atomic():
            apply_delta(user, -amount)
            bet = Bet.objects.create(user=user, round=round_obj, color=color, amount=amount)

            updated = GameRound.objects.filter(
                pk=round_obj.pk,
                status=GameRound.LIVE,
                end_time__gte=now + close_before_end(),
            ).update(
                **{
                    f"{color}_count": F(f"{color}_count") + 1,
                    f"{color}_amount": F(f"{color}_amount") + amount,
                }
            )
            if not updated:
                raise _WindowClosed()

            record_transaction(
                user,
                WalletTransaction.BET,
                -amount,
                description=f"Bet on {color} in round {round_obj.round_id}",
                reference=reference,
                meta={"bet_id": bet.pk, "round_id": round_obj.round_id, "color": color},
            )
    except InsufficientFunds:
        return Result.fail("Insufficient balance", code=error_codes.INSUFFICIENT_FUNDS)
    except _WindowClosed:
        return Result.fail("Betting is closed for this round", code=error_codes.BETTING_CLOSED)
    except IntegrityError:
        if reference:
            replayed = _replayed_bet(reference)
            if replayed is not None:
                return Result.ok(replayed)
        return Result.fail("You have already placed a bet in this round", code=error_codes.ALREADY_BET)

    logger.info("User %s bet %s on %s in round %s", user.pk, amount, color, round_obj.round_id)
    return Result.ok(bet)
