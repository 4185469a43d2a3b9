import logging
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from .models import Wallet, WalletTransaction

logger = logging.getLogger(__name__)

ACCUMULATOR_FIELDS = ("total_deposits", "total_withdrawals", "total_winnings")


class WalletError(Exception):
    pass


class InsufficientFunds(WalletError):
    pass


# ======================================================
# BALANCE MUTATION
# ======================================================
def apply_delta(user, delta, floor_at_zero: bool = True, **accumulators) -> Decimal:
    """
    Add a signed ``delta`` to the user's balance as one conditional UPDATE.

    With ``floor_at_zero`` a debit only matches the row while
    ``balance >= -delta``; no row matched means InsufficientFunds and nothing
    was written. Keyword arguments named after the wallet accumulators
    (``total_winnings=...``) are incremented in the same statement.

    Returns the balance after the update.
    """
    delta = Decimal(delta)
    updates = {
        "balance": F("balance") + delta,
        "updated_at": timezone.now(),
    }
    for field, increment in accumulators.items():
        if field not in ACCUMULATOR_FIELDS:
            raise WalletError(f"Unknown wallet accumulator: {field}")
        updates[field] = F(field) + Decimal(increment)

    qs = Wallet.objects.filter(user=user)
    if floor_at_zero and delta < 0:
        qs = qs.filter(balance__gte=-delta)

    if qs.update(**updates) == 0:
        if not Wallet.objects.filter(user=user).exists():
            raise WalletError("Wallet not found")
        raise InsufficientFunds("Insufficient balance")

    return Wallet.objects.values_list("balance", flat=True).get(user=user)


def get_balance(user) -> Decimal:
    wallet, _ = Wallet.objects.get_or_create(user=user)
    return wallet.balance


# ======================================================
# LEDGER
# ======================================================
def record_transaction(
    user,
    tx_type: str,
    amount,
    status: str = WalletTransaction.COMPLETED,
    description: str = "",
    reference: str = None,
    meta: dict = None,
) -> WalletTransaction:
    return WalletTransaction.objects.create(
        user_id=getattr(user, "pk", user),
        tx_type=tx_type,
        amount=Decimal(amount),
        status=status,
        description=description,
        reference=reference or f"{tx_type}_{uuid.uuid4().hex[:16]}",
        meta=meta or {},
    )


def ledger_sum(user) -> Decimal:
    """
    Sum of every ledger entry that moved the balance.

    Deposit entries only count once completed; every other entry is written
    in the same transaction as its balance change.
    """
    total = (
        WalletTransaction.objects.filter(user=user)
        .filter(~Q(tx_type=WalletTransaction.DEPOSIT) | Q(status=WalletTransaction.COMPLETED))
        .aggregate(total=Sum("amount"))["total"]
    )
    return total or Decimal("0.00")


# ======================================================
# REFERRAL BONUS
# ======================================================
def credit_referral_bonus(referrer, referred_user, amount=None):
    """
    Credit the referrer once per referred user. Runs independently of the
    referred user's own wallet writes.
    """
    from accounts.models import Referral

    bonus = Decimal(amount if amount is not None else settings.WINGO_REFERRAL_BONUS)

    with transaction.atomic():
        referral, created = Referral.objects.get_or_create(
            referred_user=referred_user,
            defaults={"referrer": referrer, "bonus_amount": bonus},
        )
        if not created:
            return referral

        apply_delta(referrer, bonus)
        record_transaction(
            referrer,
            WalletTransaction.REFERRAL,
            bonus,
            description=f"Referral bonus for {referred_user.username}",
            reference=f"referral_{referred_user.pk}",
            meta={"referred_user_id": referred_user.pk},
        )

    logger.info("Referral bonus %s credited to user %s", bonus, referrer.pk)
    return referral
