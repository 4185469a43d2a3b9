import random
from decimal import Decimal

import pytest

from wingo.outcome import admin_commission, house_liability, resolve_outcome


def _exposure(red, green, violet):
    return {"red": Decimal(red), "green": Decimal(green), "violet": Decimal(violet)}


def test_lowest_stake_wins():
    outcome = resolve_outcome(_exposure(100, 50, 200))
    assert outcome.winning_color == "green"
    assert outcome.total_staked == Decimal("350")


def test_tie_goes_to_red_first():
    results = {resolve_outcome(_exposure(100, 100, 300)).winning_color for _ in range(20)}
    assert results == {"red"}


def test_tie_between_green_and_violet():
    assert resolve_outcome(_exposure(300, 40, 40)).winning_color == "green"


def test_tie_between_red_and_violet():
    assert resolve_outcome(_exposure(10, 500, 10)).winning_color == "red"


def test_empty_round_resolves_to_red():
    outcome = resolve_outcome({})
    assert outcome.winning_color == "red"
    assert outcome.total_staked == Decimal("0")


def test_winning_number_comes_from_rng():
    first = resolve_outcome(_exposure(1, 2, 3), rng=random.Random(7)).winning_number
    second = resolve_outcome(_exposure(1, 2, 3), rng=random.Random(7)).winning_number
    assert first == second
    assert 0 <= first <= 9


@pytest.mark.parametrize(
    "total, expected",
    [
        ("0", "1"),
        ("999", "1"),
        ("2500", "2"),
        ("9999", "9"),
        ("250000", "10"),
    ],
)
def test_admin_commission_is_clamped(total, expected):
    assert admin_commission(Decimal(total)) == Decimal(expected)


def test_house_liability_never_exceeds_twice_smallest_pool():
    rng = random.Random(1234)
    for _ in range(200):
        exposure = _exposure(*(rng.randint(0, 10_000) for _ in range(3)))
        outcome = resolve_outcome(exposure, rng=rng)
        liability = house_liability(exposure, outcome.winning_color)
        assert liability == 2 * min(exposure.values())
        assert liability <= min(house_liability(exposure, c) for c in exposure)


def test_adversarial_stakes_bound_payout():
    # a single token bet on one colour is all the house pays
    exposure = _exposure(10_000, 1, 10_000)
    outcome = resolve_outcome(exposure)
    assert outcome.winning_color == "green"
    assert house_liability(exposure, "green") == Decimal("2")

    even = _exposure(100, 100, 100)
    assert house_liability(even, resolve_outcome(even).winning_color) == Decimal("200")
