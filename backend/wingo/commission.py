import logging
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from wallets.models import Withdrawal
from wallets.withdrawals import COMMISSION_RATE

from .models import Bet

logger = logging.getLogger(__name__)


def reconcile_withdrawal_commissions() -> int:
    """
    Unlock commission on every withdrawal hold whose owner has wagered at
    least ``min_bet_amount`` since the hold was created. Completed
    commissions are never revisited. Returns the number unlocked.
    """
    unlocked = 0
    holds = Withdrawal.objects.filter(
        commission_status=Withdrawal.COMMISSION_PENDING,
        status__in=Withdrawal.COMMISSION_ELIGIBLE_STATUSES,
    )
    for hold in holds:
        wagered = (
            Bet.objects.filter(user_id=hold.user_id, created_at__gte=hold.created_at)
            .aggregate(total=Sum("amount"))["total"]
            or Decimal("0")
        )
        if wagered < hold.min_bet_amount:
            continue

        earned = (hold.min_bet_amount * COMMISSION_RATE).quantize(Decimal("0.01"))
        claimed = Withdrawal.objects.filter(
            pk=hold.pk, commission_status=Withdrawal.COMMISSION_PENDING
        ).update(
            commission_status=Withdrawal.COMMISSION_COMPLETED,
            commission_earned=earned,
            updated_at=timezone.now(),
        )
        if claimed:
            unlocked += 1
            logger.info("Commission %s unlocked on withdrawal %s (wagered %s)", earned, hold.pk, wagered)

    return unlocked
