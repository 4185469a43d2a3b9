# wallets/withdrawals.py
"""
Withdrawal lifecycle.

    pending ──process──> processing
    pending|processing ──approve (manual)──> completed
    pending|processing ──approve (auto)──> approved ──payout created──> processing
    approved|processing ──payout webhook──> completed | rejected (refunded)
    pending|processing ──reject──> rejected (refunded)

Every transition is a conditional UPDATE on the current status, so a second
admin click, a retried webhook or an overlapping poll cannot refund twice.
"""
import logging
import uuid
from decimal import ROUND_CEILING, Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from core import error_codes
from core.result import Result

from .destinations import destination_from_dict, destination_to_dict
from .models import Withdrawal, WalletTransaction
from .providers import (
    PAYOUT_COMPLETED_STATES,
    PAYOUT_FAILED_STATES,
    ProviderError,
    get_provider,
)
from .services import InsufficientFunds, apply_delta, record_transaction

logger = logging.getLogger(__name__)

MIN_WAGER_FLOOR = Decimal("100")
MIN_WAGER_RATIO = Decimal("0.10")
COMMISSION_RATE = Decimal("0.05")

IN_FLIGHT_STATUSES = (Withdrawal.STATUS_APPROVED, Withdrawal.STATUS_PROCESSING)


def compute_min_bet_amount(amount: Decimal) -> Decimal:
    """Wagering required to unlock commission: max(100, ceil(10% of amount))."""
    ten_percent = (Decimal(amount) * MIN_WAGER_RATIO).to_integral_value(rounding=ROUND_CEILING)
    return max(MIN_WAGER_FLOOR, ten_percent)


# ======================================================
# REQUEST
# ======================================================
def request_withdrawal(user, amount: Decimal, destination, idempotency_key: str = None) -> Result:
    min_amount = Decimal(settings.WINGO_MIN_WITHDRAWAL)
    max_amount = Decimal(settings.WINGO_MAX_WITHDRAWAL)
    if amount < min_amount or amount > max_amount:
        return Result.fail(
            f"Withdrawal amount must be between ₹{min_amount} and ₹{max_amount}",
            code=error_codes.VALIDATION_ERROR,
        )

    if idempotency_key:
        reference = f"wd:{user.pk}:{idempotency_key}"[:64]
        existing = Withdrawal.objects.filter(transaction__reference=reference).first()
        if existing:
            return Result.ok(existing)
    else:
        reference = f"withdraw_{uuid.uuid4().hex[:16]}"

    try:
        with transaction.atomic():
            apply_delta(user, -amount)
            tx = record_transaction(
                user,
                WalletTransaction.WITHDRAWAL,
                -amount,
                status=WalletTransaction.PENDING,
                description=f"Withdrawal request of ₹{amount} via {destination.method}",
                reference=reference,
                meta={"method": destination.method},
            )
            withdrawal = Withdrawal.objects.create(
                user=user,
                transaction=tx,
                amount=amount,
                method=destination.method,
                destination=destination_to_dict(destination),
                min_bet_amount=compute_min_bet_amount(amount),
            )
    except InsufficientFunds:
        return Result.fail("Insufficient balance", code=error_codes.INSUFFICIENT_FUNDS)
    except IntegrityError:
        existing = Withdrawal.objects.filter(transaction__reference=reference).first()
        if existing is None:
            raise
        return Result.ok(existing)

    logger.info("Withdrawal %s of %s requested by user %s", withdrawal.pk, amount, user.pk)
    return Result.ok(withdrawal)


# ======================================================
# REFUND (internal)
# ======================================================
def _refund(withdrawal: Withdrawal, description: str) -> bool:
    """
    Return the held amount to the balance. Callers must already have won the
    status transition; the ``refunded`` flag makes a second call a no-op.
    """
    claimed = Withdrawal.objects.filter(pk=withdrawal.pk, refunded=False).update(refunded=True)
    if not claimed:
        return False

    apply_delta(withdrawal.user_id, withdrawal.amount)
    record_transaction(
        withdrawal.user_id,
        WalletTransaction.WITHDRAWAL,
        withdrawal.amount,
        description=description,
        reference=f"withdraw_refund_{withdrawal.pk}",
        meta={"withdrawal_id": withdrawal.pk},
    )
    WalletTransaction.objects.filter(pk=withdrawal.transaction_id).update(
        status=WalletTransaction.CANCELLED
    )
    logger.info("Withdrawal %s refunded %s to user %s", withdrawal.pk, withdrawal.amount, withdrawal.user_id)
    return True


def _mark_paid_out(withdrawal: Withdrawal):
    WalletTransaction.objects.filter(pk=withdrawal.transaction_id).update(
        status=WalletTransaction.COMPLETED
    )
    apply_delta(withdrawal.user_id, Decimal("0"), total_withdrawals=withdrawal.amount)


def _fail_payout(withdrawal: Withdrawal, reason: str):
    """Approved payout never reached the provider: reject and refund."""
    with transaction.atomic():
        failed = Withdrawal.objects.filter(
            pk=withdrawal.pk, status=Withdrawal.STATUS_APPROVED, payout_id__isnull=True
        ).update(
            status=Withdrawal.STATUS_REJECTED,
            payout_status="failed",
            payout_failure_reason=reason[:255],
            updated_at=timezone.now(),
        )
        if failed:
            _refund(withdrawal, "Refund for failed payout")


def _get(withdrawal_id):
    return Withdrawal.objects.filter(pk=withdrawal_id).first()


# ======================================================
# ADMIN ACTIONS
# ======================================================
def mark_processing(withdrawal_id, admin) -> Result:
    claimed = Withdrawal.objects.filter(
        pk=withdrawal_id, status=Withdrawal.STATUS_PENDING
    ).update(status=Withdrawal.STATUS_PROCESSING, processed_by=admin, updated_at=timezone.now())
    if not claimed:
        if _get(withdrawal_id) is None:
            return Result.fail("Withdrawal not found", code=error_codes.NOT_FOUND)
        return Result.fail("Withdrawal already processed", code=error_codes.ALREADY_PROCESSED)
    return Result.ok(_get(withdrawal_id))


def approve_withdrawal(withdrawal_id, admin, admin_notes: str = "", auto_payout: bool = None, provider=None) -> Result:
    """
    Manual mode marks the withdrawal paid (the admin transfers the money
    outside the system). Auto mode hands it to the payout provider; a provider
    failure refunds the user straight away.
    """
    withdrawal = _get(withdrawal_id)
    if withdrawal is None:
        return Result.fail("Withdrawal not found", code=error_codes.NOT_FOUND)

    if auto_payout is None:
        auto_payout = settings.WINGO_AUTO_PAYOUT
    now = timezone.now()
    open_qs = Withdrawal.objects.filter(
        pk=withdrawal.pk, status__in=Withdrawal.OPEN_STATUSES, payout_id__isnull=True
    )

    if not auto_payout:
        with transaction.atomic():
            claimed = open_qs.update(
                status=Withdrawal.STATUS_COMPLETED,
                payout_status="manual",
                processed_at=now,
                processed_by=admin,
                admin_notes=admin_notes or withdrawal.admin_notes,
                updated_at=now,
            )
            if not claimed:
                return Result.fail("Withdrawal already processed", code=error_codes.ALREADY_PROCESSED)
            _mark_paid_out(withdrawal)

        logger.info("Withdrawal %s approved for manual payout by %s", withdrawal.pk, admin.pk)
        return Result.ok(_get(withdrawal.pk))

    claimed = open_qs.update(
        status=Withdrawal.STATUS_APPROVED,
        payout_status="initiating",
        processed_at=now,
        processed_by=admin,
        admin_notes=admin_notes or withdrawal.admin_notes,
        updated_at=now,
    )
    if not claimed:
        return Result.fail("Withdrawal already processed", code=error_codes.ALREADY_PROCESSED)

    try:
        provider = provider or get_provider()
        payout = provider.initiate_payout(
            withdrawal.amount,
            destination_from_dict(withdrawal.method, withdrawal.destination),
            reference=f"withdraw_{withdrawal.pk}",
        )
    except ProviderError as e:
        logger.error("Payout for withdrawal %s failed: %s", withdrawal.pk, e)
        _fail_payout(withdrawal, str(e))
        return Result.fail(f"Payout failed: {e}", code=error_codes.PROVIDER_ERROR)
    except Exception as e:
        # no payout id was recorded, so nothing else would ever release the hold
        logger.exception("Unexpected error sending payout for withdrawal %s", withdrawal.pk)
        _fail_payout(withdrawal, f"{type(e).__name__}: {e}")
        raise

    Withdrawal.objects.filter(pk=withdrawal.pk, status=Withdrawal.STATUS_APPROVED).update(
        status=Withdrawal.STATUS_PROCESSING,
        payout_id=payout.payout_id,
        payout_status=payout.status,
        updated_at=timezone.now(),
    )
    logger.info("Withdrawal %s sent to payout %s (%s)", withdrawal.pk, payout.payout_id, payout.status)

    if payout.status in PAYOUT_COMPLETED_STATES | PAYOUT_FAILED_STATES:
        apply_payout_status(payout.payout_id, payout.status, payout.failure_reason)

    return Result.ok(_get(withdrawal.pk))


def reject_withdrawal(withdrawal_id, admin, admin_notes: str = "") -> Result:
    now = timezone.now()
    with transaction.atomic():
        claimed = Withdrawal.objects.filter(
            pk=withdrawal_id, status__in=Withdrawal.OPEN_STATUSES, payout_id__isnull=True
        ).update(
            status=Withdrawal.STATUS_REJECTED,
            processed_at=now,
            processed_by=admin,
            admin_notes=admin_notes,
            updated_at=now,
        )
        withdrawal = _get(withdrawal_id)
        if withdrawal is None:
            return Result.fail("Withdrawal not found", code=error_codes.NOT_FOUND)
        if not claimed:
            return Result.fail("Withdrawal already processed", code=error_codes.ALREADY_PROCESSED)
        _refund(withdrawal, "Refund for rejected withdrawal")

    logger.info("Withdrawal %s rejected by %s", withdrawal.pk, admin.pk)
    return Result.ok(_get(withdrawal.pk))


# ======================================================
# PAYOUT STATUS (webhook / polling)
# ======================================================
def apply_payout_status(payout_id: str, provider_status: str, failure_reason: str = None) -> Result:
    withdrawal = Withdrawal.objects.filter(payout_id=payout_id).first()
    if withdrawal is None:
        logger.warning("Withdrawal not found for payout ID: %s", payout_id)
        return Result.fail("Withdrawal not found", code=error_codes.NOT_FOUND)

    status = (provider_status or "").lower()
    now = timezone.now()

    if status in PAYOUT_COMPLETED_STATES:
        with transaction.atomic():
            claimed = Withdrawal.objects.filter(
                pk=withdrawal.pk, status__in=IN_FLIGHT_STATUSES
            ).update(
                status=Withdrawal.STATUS_COMPLETED,
                payout_status="completed",
                updated_at=now,
            )
            if claimed:
                _mark_paid_out(withdrawal)

    elif status in PAYOUT_FAILED_STATES:
        with transaction.atomic():
            claimed = Withdrawal.objects.filter(
                pk=withdrawal.pk, status__in=IN_FLIGHT_STATUSES
            ).update(
                status=Withdrawal.STATUS_REJECTED,
                payout_status=status,
                payout_failure_reason=failure_reason,
                updated_at=now,
            )
            if not claimed and status == "reversed":
                # money came back after the payout had already been counted
                claimed = Withdrawal.objects.filter(
                    pk=withdrawal.pk, status=Withdrawal.STATUS_COMPLETED
                ).update(
                    status=Withdrawal.STATUS_REJECTED,
                    payout_status=status,
                    payout_failure_reason=failure_reason,
                    updated_at=now,
                )
                if claimed:
                    apply_delta(withdrawal.user_id, Decimal("0"), total_withdrawals=-withdrawal.amount)
            if claimed:
                _refund(withdrawal, f"Refund for {status} payout")

    else:
        Withdrawal.objects.filter(pk=withdrawal.pk, status__in=IN_FLIGHT_STATUSES).update(
            payout_status=status, updated_at=now
        )

    logger.info("Withdrawal %s payout %s -> %s", withdrawal.pk, payout_id, status)
    return Result.ok(_get(withdrawal.pk))


def sync_payout_statuses(provider=None) -> int:
    """Poll the provider for every in-flight payout. Returns how many were checked."""
    provider = provider or get_provider()
    checked = 0
    for withdrawal in Withdrawal.objects.filter(
        status__in=IN_FLIGHT_STATUSES, payout_id__isnull=False
    ):
        try:
            payout = provider.get_payout_status(withdrawal.payout_id)
        except ProviderError as e:
            logger.error("Could not fetch payout %s: %s", withdrawal.payout_id, e)
            continue
        apply_payout_status(withdrawal.payout_id, payout.status, payout.failure_reason)
        checked += 1
    return checked
