# wallets/deposits.py
import logging
import time
from decimal import Decimal

from django.conf import settings
from django.db import transaction

from core import error_codes
from core.result import Result

from .models import Wallet, WalletTransaction
from .providers import ProviderError, get_provider, to_minor_units
from .services import apply_delta, record_transaction

logger = logging.getLogger(__name__)


def create_deposit(user, amount: Decimal, provider=None) -> Result:
    """
    Open a deposit with the payment provider and record it as a pending
    ledger entry. The balance does not move until the deposit is confirmed.
    """
    min_amount = Decimal(settings.WINGO_MIN_DEPOSIT)
    max_amount = Decimal(settings.WINGO_MAX_DEPOSIT)
    if amount < min_amount or amount > max_amount:
        return Result.fail(
            f"Deposit amount must be between ₹{min_amount} and ₹{max_amount}",
            code=error_codes.VALIDATION_ERROR,
        )

    try:
        provider = provider or get_provider()
        intent = provider.create_deposit_intent(
            amount,
            receipt=f"dep_{user.pk}_{int(time.time() * 1000)}",
            notes={"user_id": str(user.pk), "type": "wallet_deposit"},
        )
    except ProviderError as e:
        logger.error("Deposit intent for user %s failed: %s", user.pk, e)
        return Result.fail("Payment gateway unavailable", code=error_codes.PROVIDER_ERROR)

    tx = record_transaction(
        user,
        WalletTransaction.DEPOSIT,
        amount,
        status=WalletTransaction.PENDING,
        description=f"Deposit of ₹{amount}",
        reference=intent.intent_id,
        meta={"gateway": type(provider).__name__, "currency": intent.currency},
    )
    return Result.ok({"intent": intent, "transaction": tx})


def confirm_deposit(user, intent_id: str, payment_id: str, signature: str, provider=None) -> Result:
    try:
        provider = provider or get_provider()
    except ProviderError as e:
        logger.error("Payment provider unavailable: %s", e)
        return Result.fail("Payment gateway unavailable", code=error_codes.PROVIDER_NOT_CONFIGURED)

    if not provider.verify_deposit_signature(intent_id, payment_id, signature):
        logger.warning("Invalid deposit signature for intent %s (user %s)", intent_id, user.pk)
        return Result.fail("Invalid payment signature", code=error_codes.INVALID_SIGNATURE)

    return complete_deposit(intent_id, payment_id=payment_id, user=user)


def complete_deposit(intent_id: str, payment_id: str = None, user=None, paid_amount_minor: int = None) -> Result:
    """
    Credit a pending deposit exactly once. Repeat calls (client confirmation
    racing the gateway webhook) return the current balance unchanged.
    """
    qs = WalletTransaction.objects.filter(reference=intent_id, tx_type=WalletTransaction.DEPOSIT)
    if user is not None:
        qs = qs.filter(user=user)
    tx = qs.first()
    if tx is None:
        return Result.fail("Transaction not found", code=error_codes.NOT_FOUND)

    if paid_amount_minor is not None and paid_amount_minor != to_minor_units(tx.amount):
        logger.critical(
            "Deposit amount mismatch ref=%s expected=%s paid=%s",
            intent_id,
            to_minor_units(tx.amount),
            paid_amount_minor,
        )
        WalletTransaction.objects.filter(pk=tx.pk, status=WalletTransaction.PENDING).update(
            status=WalletTransaction.FAILED,
            meta={**tx.meta, "reason": "amount_mismatch", "paid_amount_minor": paid_amount_minor},
        )
        return Result.fail("Amount mismatch", code=error_codes.VALIDATION_ERROR)

    with transaction.atomic():
        claimed = WalletTransaction.objects.filter(
            pk=tx.pk, status=WalletTransaction.PENDING
        ).update(
            status=WalletTransaction.COMPLETED,
            meta={**tx.meta, "payment_id": payment_id, "verified": True},
        )
        if not claimed:
            logger.info("Deposit %s already processed", intent_id)
            balance = Wallet.objects.values_list("balance", flat=True).get(user_id=tx.user_id)
            return Result.ok(balance)

        balance = apply_delta(tx.user_id, tx.amount, total_deposits=tx.amount)

    logger.info("Deposit %s credited %s to user %s", intent_id, tx.amount, tx.user_id)
    return Result.ok(balance)
