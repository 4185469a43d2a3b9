from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import balance_of
from wallets.models import Wallet, WalletTransaction
from wallets.services import WalletError, ledger_sum
from wingo.engine import recover_unsettled_bets, settle_round
from wingo.models import Bet, GameRound
from wingo.services import place_bet

pytestmark = pytest.mark.django_db


def _after_end(round_obj, seconds=1):
    return round_obj.end_time + timedelta(seconds=seconds)


def test_does_nothing_before_end_time(user, live_round):
    place_bet(user, "red", Decimal("100"))
    assert settle_round(live_round, now=live_round.end_time - timedelta(seconds=1)) is None

    live_round.refresh_from_db()
    assert live_round.status == GameRound.LIVE


def test_payout_goes_to_least_backed_colour(make_user, live_round):
    red = make_user()
    green_a = make_user()
    green_b = make_user()
    violet = make_user()
    place_bet(red, "red", Decimal("100"))
    place_bet(green_a, "green", Decimal("30"))
    place_bet(green_b, "green", Decimal("20"))
    place_bet(violet, "violet", Decimal("200"))

    report = settle_round(live_round, now=_after_end(live_round))

    assert report.winning_color == "green"
    assert (report.winners, report.losers, report.failed) == (2, 2, 0)
    assert report.total_paid == Decimal("100")
    assert balance_of(green_a) == Decimal("1030")
    assert balance_of(green_b) == Decimal("1020")
    assert balance_of(red) == Decimal("900")
    assert balance_of(violet) == Decimal("800")

    winner_bet = Bet.objects.get(user=green_a)
    assert winner_bet.status == Bet.WON
    assert winner_bet.win_amount == Decimal("60")
    assert Bet.objects.get(user=red).payout == Decimal("0")
    assert Wallet.objects.get(user=green_a).total_winnings == Decimal("60")

    live_round.refresh_from_db()
    assert live_round.status == GameRound.COMPLETED
    assert live_round.winning_color == "green"
    assert 0 <= live_round.winning_number <= 9
    assert live_round.admin_commission == Decimal("1")


def test_settles_exactly_once(make_user, live_round):
    winner = make_user()
    loser = make_user()
    place_bet(winner, "green", Decimal("10"))
    place_bet(loser, "red", Decimal("50"))
    place_bet(make_user(), "violet", Decimal("60"))

    # stale copies, as each scheduler process would hold them
    copies = [GameRound.objects.get(pk=live_round.pk) for _ in range(5)]
    reports = [settle_round(copy, now=_after_end(live_round)) for copy in copies]

    assert sum(1 for r in reports if r is not None) == 1
    assert balance_of(winner) == Decimal("1010")
    assert WalletTransaction.objects.filter(tx_type=WalletTransaction.WIN).count() == 1
    assert GameRound.objects.count() == 2
    assert GameRound.objects.filter(status=GameRound.LIVE).count() == 1


def test_end_to_end_round(make_user, live_round):
    player = make_user("player_a", balance="1000")

    assert place_bet(player, "red", Decimal("100"))
    assert balance_of(player) == Decimal("900")
    live_round.refresh_from_db()
    assert (live_round.red_count, live_round.red_amount) == (1, Decimal("100"))

    now = _after_end(live_round)
    report = settle_round(live_round, now=now)

    assert report.winning_color != "red"
    assert Bet.objects.get(user=player).status == Bet.LOST
    assert balance_of(player) == Decimal("900")

    next_round = GameRound.objects.get(status=GameRound.LIVE)
    assert next_round.round_id == report.next_round_id
    assert next_round.start_time == now
    assert next_round.end_time == now + timedelta(seconds=60)
    assert next_round.exposure() == {"green": 0, "red": 0, "violet": 0}
    assert next_round.counts() == {"green": 0, "red": 0, "violet": 0}


def test_failed_credit_is_counted_and_recovered(make_user, live_round, monkeypatch):
    import wingo.engine as engine

    unlucky = make_user()
    lucky = make_user()
    place_bet(unlucky, "green", Decimal("10"))
    place_bet(lucky, "green", Decimal("10"))
    place_bet(make_user(), "red", Decimal("500"))
    place_bet(make_user(), "violet", Decimal("500"))

    real_apply_delta = engine.apply_delta

    def flaky_apply_delta(user, delta, **kwargs):
        if user == unlucky.pk:
            raise WalletError("store hiccup")
        return real_apply_delta(user, delta, **kwargs)

    monkeypatch.setattr(engine, "apply_delta", flaky_apply_delta)
    report = settle_round(live_round, now=_after_end(live_round))

    assert report.failed == 1
    assert report.winners == 1
    stranded = Bet.objects.get(user=unlucky)
    assert stranded.status == Bet.PENDING
    assert balance_of(unlucky) == Decimal("990")

    monkeypatch.setattr(engine, "apply_delta", real_apply_delta)
    assert recover_unsettled_bets() == 1
    assert recover_unsettled_bets() == 0

    stranded.refresh_from_db()
    assert stranded.status == Bet.WON
    assert balance_of(unlucky) == Decimal("1010")


def test_conservation_across_round(make_user, live_round):
    players = {make_user(balance="300"): color for color in ("red", "green", "violet", "red")}
    for player, color in players.items():
        place_bet(player, color, Decimal("25"))

    settle_round(live_round, now=_after_end(live_round))

    for player in players:
        assert Decimal("300") + ledger_sum(player) == balance_of(player)


def test_untouched_round_goes_to_red(live_round):
    report = settle_round(live_round, now=_after_end(live_round))

    assert report.winning_color == "red"
    assert (report.winners, report.losers, report.failed) == (0, 0, 0)
    live_round.refresh_from_db()
    assert live_round.winning_color == "red"
