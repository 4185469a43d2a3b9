# wallets/destinations.py
"""
Where a withdrawal is paid to. Exactly one of three shapes; each one carries
only the fields its method needs.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar, Union


@dataclass(frozen=True)
class BankDestination:
    method: ClassVar[str] = "bank"

    account_holder_name: str
    account_number: str
    ifsc_code: str
    bank_name: str


@dataclass(frozen=True)
class UpiDestination:
    method: ClassVar[str] = "upi"

    upi_id: str


@dataclass(frozen=True)
class WalletDestination:
    method: ClassVar[str] = "wallet"

    WALLET_TYPES: ClassVar[tuple] = ("paytm", "phonepe", "googlepay", "other")

    wallet_type: str
    wallet_number: str


WithdrawalDestination = Union[BankDestination, UpiDestination, WalletDestination]

DESTINATION_TYPES = {
    cls.method: cls for cls in (BankDestination, UpiDestination, WalletDestination)
}


def destination_to_dict(destination: WithdrawalDestination) -> dict:
    return asdict(destination)


def destination_from_dict(method: str, data: dict) -> WithdrawalDestination:
    try:
        cls = DESTINATION_TYPES[method]
    except KeyError:
        raise ValueError(f"Unknown withdrawal method: {method}")
    return cls(**data)
