import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from core import error_codes
from core.result import Result
from wallets.models import WalletTransaction
from wallets.services import apply_delta, record_transaction

from .commission import reconcile_withdrawal_commissions
from .models import Bet, GameRound
from .outcome import PAYOUT_MULTIPLIER, resolve_outcome
from .services import current_live_round, open_round

logger = logging.getLogger(__name__)


@dataclass
class SettlementReport:
    round_id: str
    winning_color: str
    winning_number: int
    winners: int = 0
    losers: int = 0
    failed: int = 0
    total_paid: Decimal = Decimal("0")
    commissions_unlocked: int = 0
    next_round_id: str = None
    failed_bet_ids: list = field(default_factory=list)


def settle_bet(bet: Bet, winning_color: str, now=None):
    """
    Move one pending bet to won or lost and pay it. Returns the new status,
    or None if the bet was already settled by someone else.
    """
    now = now or timezone.now()
    won = bet.color == winning_color
    win_amount = bet.amount * PAYOUT_MULTIPLIER if won else Decimal("0")
    new_status = Bet.WON if won else Bet.LOST

    with transaction.atomic():
        claimed = Bet.objects.filter(pk=bet.pk, status=Bet.PENDING).update(
            status=new_status,
            win_amount=win_amount,
            payout=win_amount,
            settled_at=now,
        )
        if not claimed:
            return None

        if won:
            apply_delta(bet.user_id, win_amount, total_winnings=win_amount)
            record_transaction(
                bet.user_id,
                WalletTransaction.WIN,
                win_amount,
                description=f"Won {winning_color} bet",
                reference=f"win_{bet.pk}",
                meta={"bet_id": bet.pk, "round_id": bet.round_id},
            )

    bet.status, bet.win_amount, bet.payout, bet.settled_at = new_status, win_amount, win_amount, now
    return new_status


def settle_round(round_obj: GameRound, now=None, rng=None):
    """
    Close an expired live round exactly once.

    Only the caller that flips the round from live to completed pays the
    bets, unlocks commissions and opens the next round; everyone else gets
    None back and changes nothing.
    """
    now = now or timezone.now()
    if round_obj.status != GameRound.LIVE or now < round_obj.end_time:
        return None

    with transaction.atomic():
        locked = (
            GameRound.objects.select_for_update()
            .filter(pk=round_obj.pk, status=GameRound.LIVE)
            .first()
        )
        if locked is None:
            logger.debug("Round %s already settled", round_obj.round_id)
            return None

        outcome = resolve_outcome(locked.exposure(), rng=rng)
        claimed = GameRound.objects.filter(pk=locked.pk, status=GameRound.LIVE).update(
            status=GameRound.COMPLETED,
            winning_color=outcome.winning_color,
            winning_number=outcome.winning_number,
            admin_commission=outcome.admin_commission,
            settled_at=now,
        )
        if not claimed:
            logger.debug("Round %s already settled", round_obj.round_id)
            return None

    report = SettlementReport(
        round_id=locked.round_id,
        winning_color=outcome.winning_color,
        winning_number=outcome.winning_number,
    )

    for bet in Bet.objects.filter(round_id=locked.pk, status=Bet.PENDING):
        try:
            status = settle_bet(bet, outcome.winning_color, now=now)
        except Exception:
            logger.exception("Failed to settle bet %s in round %s", bet.pk, locked.round_id)
            report.failed += 1
            report.failed_bet_ids.append(bet.pk)
            continue
        if status == Bet.WON:
            report.winners += 1
            report.total_paid += bet.win_amount
        elif status == Bet.LOST:
            report.losers += 1

    if report.failed:
        logger.error(
            "Round %s left %s bet(s) unsettled; recovery will retry them",
            locked.round_id,
            report.failed,
        )

    report.commissions_unlocked = reconcile_withdrawal_commissions()
    report.next_round_id = open_round(now).round_id

    logger.info(
        "Settled round %s: %s wins (winners=%s losers=%s paid=%s)",
        report.round_id,
        report.winning_color,
        report.winners,
        report.losers,
        report.total_paid,
    )
    round_obj.refresh_from_db()
    return report


def recover_unsettled_bets(now=None) -> int:
    """Settle pending bets left behind on completed rounds. Returns how many were settled."""
    settled = 0
    stranded = Bet.objects.filter(
        status=Bet.PENDING,
        round__status=GameRound.COMPLETED,
        round__winning_color__isnull=False,
    ).select_related("round")
    for bet in stranded:
        try:
            if settle_bet(bet, bet.round.winning_color, now=now):
                settled += 1
        except Exception:
            logger.exception("Recovery failed for bet %s", bet.pk)
    if settled:
        logger.warning("Recovered %s unsettled bet(s)", settled)
    return settled


def process_current_round(now=None) -> Result:
    """Manual trigger for settling the live round once it has expired."""
    now = now or timezone.now()
    live = current_live_round()
    if live is None:
        return Result.fail("No active round", code=error_codes.NO_LIVE_ROUND)
    if now < live.end_time:
        return Result.fail("Round is still running", code=error_codes.ROUND_STILL_RUNNING)

    report = settle_round(live, now=now)
    if report is None:
        return Result.fail("Round already settled", code=error_codes.ROUND_ALREADY_SETTLED)
    return Result.ok(report)
