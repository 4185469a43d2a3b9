"""
Shared fixtures: funded users, a live round and an in-memory payment gateway.
"""
import uuid
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from wallets.models import Wallet
from wallets.providers import (
    DepositIntent,
    PaymentProvider,
    PayoutProvider,
    PayoutResult,
    ProviderError,
)
from wingo.services import open_round

User = get_user_model()


class FakeProvider(PaymentProvider, PayoutProvider):
    """Gateway double. Signatures are valid when they equal ``"valid"``."""

    def __init__(self, payout_status="queued", fail_payout=False):
        self.payout_status = payout_status
        self.fail_payout = fail_payout
        self.intents = []
        self.payouts = []
        self.statuses = {}

    def create_deposit_intent(self, amount, receipt, notes=None):
        intent = DepositIntent(intent_id=f"order_{uuid.uuid4().hex[:14]}", amount=amount, currency="INR")
        self.intents.append(intent)
        return intent

    def verify_deposit_signature(self, intent_id, payment_id, signature):
        return signature == "valid"

    def initiate_payout(self, amount, destination, reference):
        if self.fail_payout:
            raise ProviderError("Payout API down")
        payout = PayoutResult(payout_id=f"pout_{uuid.uuid4().hex[:14]}", status=self.payout_status)
        self.payouts.append((amount, destination, reference, payout))
        return payout

    def get_payout_status(self, payout_id):
        return PayoutResult(payout_id=payout_id, status=self.statuses.get(payout_id, self.payout_status))

    def verify_webhook_signature(self, payload, signature):
        return signature == "valid"


def balance_of(user) -> Decimal:
    return Wallet.objects.values_list("balance", flat=True).get(user=user)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, balance="1000", **extra):
        counter["n"] += 1
        username = username or f"player{counter['n']}"
        user = User.objects.create_user(
            username=username,
            email=f"{username}@example.com",
            password="secret123",
            **extra,
        )
        Wallet.objects.filter(user=user).update(balance=Decimal(balance))
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user("alice")


@pytest.fixture
def admin_user(make_user):
    return make_user("boss", balance="0", is_staff=True)


@pytest.fixture
def live_round(db):
    return open_round(timezone.now())


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def api_client():
    return APIClient()
