# wallets/providers.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.utils.module_loading import import_string

# Provider payout states, normalised to lower case
PAYOUT_COMPLETED_STATES = {"processed", "transferred", "completed"}
PAYOUT_FAILED_STATES = {"failed", "rejected", "reversed", "cancelled"}


class ProviderError(Exception):
    pass


class ProviderNotConfigured(ProviderError):
    pass


@dataclass(frozen=True)
class DepositIntent:
    intent_id: str
    amount: Decimal
    currency: str
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PayoutResult:
    payout_id: Optional[str]
    status: str
    failure_reason: Optional[str] = None
    raw: dict = field(default_factory=dict)


class PaymentProvider(ABC):
    """Collects deposits."""

    @abstractmethod
    def create_deposit_intent(self, amount: Decimal, receipt: str, notes: dict | None = None) -> DepositIntent:
        ...

    @abstractmethod
    def verify_deposit_signature(self, intent_id: str, payment_id: str, signature: str) -> bool:
        ...


class PayoutProvider(ABC):
    """Sends withdrawals to a bank account, UPI handle or mobile wallet."""

    @abstractmethod
    def initiate_payout(self, amount: Decimal, destination, reference: str) -> PayoutResult:
        ...

    @abstractmethod
    def get_payout_status(self, payout_id: str) -> PayoutResult:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        ...


def get_provider():
    """Instantiate the configured gateway (``WINGO_PAYMENT_PROVIDER``)."""
    return import_string(settings.WINGO_PAYMENT_PROVIDER)()


def to_minor_units(amount) -> int:
    """Rupees to paise."""
    return int((Decimal(amount) * 100).to_integral_value())
