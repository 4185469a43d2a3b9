from decimal import Decimal

import pytest

from conftest import balance_of
from core import error_codes
from wallets.deposits import complete_deposit, confirm_deposit, create_deposit
from wallets.models import Wallet, WalletTransaction
from wallets.services import ledger_sum

pytestmark = pytest.mark.django_db


def test_create_deposit_records_pending_entry(user, provider):
    result = create_deposit(user, Decimal("500"), provider=provider)

    intent = result.value["intent"]
    tx = result.value["transaction"]
    assert tx.reference == intent.intent_id
    assert tx.status == WalletTransaction.PENDING
    assert balance_of(user) == Decimal("1000")
    assert ledger_sum(user) == Decimal("0")


@pytest.mark.parametrize("amount", ["69.99", "50000.01"])
def test_deposit_limits(user, provider, amount):
    result = create_deposit(user, Decimal(amount), provider=provider)
    assert result.error_code == error_codes.VALIDATION_ERROR
    assert provider.intents == []


def test_confirm_credits_once(user, provider):
    intent = create_deposit(user, Decimal("500"), provider=provider).value["intent"]

    first = confirm_deposit(user, intent.intent_id, "pay_1", "valid", provider=provider)
    second = confirm_deposit(user, intent.intent_id, "pay_1", "valid", provider=provider)

    assert first.value == Decimal("1500")
    assert second.value == Decimal("1500")
    wallet = Wallet.objects.get(user=user)
    assert wallet.total_deposits == Decimal("500")
    assert Decimal("1000") + ledger_sum(user) == wallet.balance


def test_bad_signature(user, provider):
    intent = create_deposit(user, Decimal("500"), provider=provider).value["intent"]
    result = confirm_deposit(user, intent.intent_id, "pay_1", "forged", provider=provider)

    assert result.error_code == error_codes.INVALID_SIGNATURE
    assert balance_of(user) == Decimal("1000")


def test_cannot_confirm_someone_elses_deposit(user, make_user, provider):
    intent = create_deposit(user, Decimal("500"), provider=provider).value["intent"]
    other = make_user()
    result = confirm_deposit(other, intent.intent_id, "pay_1", "valid", provider=provider)
    assert result.error_code == error_codes.NOT_FOUND


def test_amount_mismatch_fails_deposit(user, provider):
    intent = create_deposit(user, Decimal("500"), provider=provider).value["intent"]
    result = complete_deposit(intent.intent_id, payment_id="pay_1", paid_amount_minor=100)

    assert result.error_code == error_codes.VALIDATION_ERROR
    assert WalletTransaction.objects.get(reference=intent.intent_id).status == WalletTransaction.FAILED
    assert balance_of(user) == Decimal("1000")
