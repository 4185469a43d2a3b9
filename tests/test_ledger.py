from decimal import Decimal

import pytest

from accounts.models import Referral
from conftest import balance_of
from wallets.models import Wallet, WalletTransaction
from wallets.services import (
    InsufficientFunds,
    WalletError,
    apply_delta,
    credit_referral_bonus,
    ledger_sum,
    record_transaction,
)

pytestmark = pytest.mark.django_db


def test_wallet_created_with_user(make_user):
    player = make_user(balance="0")
    assert Wallet.objects.filter(user=player).exists()


def test_apply_delta_credit_and_debit(user):
    assert apply_delta(user, Decimal("50")) == Decimal("1050")
    assert apply_delta(user, Decimal("-1050")) == Decimal("0")


def test_apply_delta_refuses_to_go_negative(user):
    with pytest.raises(InsufficientFunds):
        apply_delta(user, Decimal("-1000.01"))
    assert balance_of(user) == Decimal("1000")


def test_apply_delta_updates_accumulators(user):
    apply_delta(user, Decimal("40"), total_winnings=Decimal("40"))
    wallet = Wallet.objects.get(user=user)
    assert wallet.balance == Decimal("1040")
    assert wallet.total_winnings == Decimal("40")


def test_apply_delta_rejects_unknown_accumulator(user):
    with pytest.raises(WalletError):
        apply_delta(user, Decimal("1"), balance_bonus=Decimal("1"))


def test_apply_delta_without_wallet(user):
    Wallet.objects.filter(user=user).delete()
    with pytest.raises(WalletError) as exc:
        apply_delta(user, Decimal("1"))
    assert not isinstance(exc.value, InsufficientFunds)


def test_ledger_sum_ignores_uncompleted_deposits(user):
    record_transaction(user, WalletTransaction.DEPOSIT, Decimal("500"), status=WalletTransaction.PENDING)
    record_transaction(user, WalletTransaction.DEPOSIT, Decimal("70"), status=WalletTransaction.FAILED)
    record_transaction(user, WalletTransaction.BET, Decimal("-20"))
    assert ledger_sum(user) == Decimal("-20")


def test_referral_bonus_credited_once(make_user):
    referrer = make_user(balance="0")
    newcomer = make_user(balance="0", referred_by=referrer)

    credit_referral_bonus(referrer, newcomer)
    credit_referral_bonus(referrer, newcomer)

    assert balance_of(referrer) == Decimal("25")
    assert balance_of(newcomer) == Decimal("0")
    assert Referral.objects.get(referred_user=newcomer).bonus_amount == Decimal("25")
    assert ledger_sum(referrer) == Decimal("25")
