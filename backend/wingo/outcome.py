"""
Outcome resolution for a Win Go round.

The colour with the least money staked on it wins. Equal totals fall back
to the fixed order red, green, violet, so the same exposure always
resolves to the same colour and an empty round goes to red. Winners are
paid a fixed 2x their stake; the winning number is drawn separately and
is for display only.
"""
import random
import secrets
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN

from .models import COLORS

PAYOUT_MULTIPLIER = Decimal("2")
MIN_ADMIN_COMMISSION = Decimal("1")
MAX_ADMIN_COMMISSION = Decimal("10")

# first colour wins a tie
TIE_BREAK_ORDER = ("red", "green", "violet")

_system_rng = secrets.SystemRandom()


@dataclass(frozen=True)
class Outcome:
    winning_color: str
    winning_number: int
    admin_commission: Decimal
    total_staked: Decimal


def admin_commission(total_staked: Decimal) -> Decimal:
    per_thousand = (Decimal(total_staked) / 1000).quantize(Decimal("1"), rounding=ROUND_DOWN)
    return min(max(per_thousand, MIN_ADMIN_COMMISSION), MAX_ADMIN_COMMISSION)


def resolve_outcome(exposure: dict, rng: random.Random = None) -> Outcome:
    """
    exposure: {"red": Decimal, "green": Decimal, "violet": Decimal}; missing
    colours count as zero.
    rng: anything with ``randint``; defaults to a system-entropy source.
    """
    totals = {color: Decimal(exposure.get(color) or 0) for color in COLORS}
    winning_color = min(TIE_BREAK_ORDER, key=lambda color: totals[color])
    total = sum(totals.values(), Decimal("0"))

    return Outcome(
        winning_color=winning_color,
        winning_number=(rng or _system_rng).randint(0, 9),
        admin_commission=admin_commission(total),
        total_staked=total,
    )


def house_liability(exposure: dict, color: str) -> Decimal:
    """What the house pays out if ``color`` wins."""
    return PAYOUT_MULTIPLIER * Decimal(exposure.get(color) or 0)
