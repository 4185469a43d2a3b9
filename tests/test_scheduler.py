import os
import socket
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import MagicMock

import pytest
from django.core.management import call_command
from django.utils import timezone

from conftest import balance_of
from wingo.models import Bet, GameRound
from wingo.redis_lock import LockHeartbeat, LockLost, RedisSchedulerLock
from wingo.scheduler import run_scheduler_tick
from wingo.services import place_bet

pytestmark = pytest.mark.django_db

COMMAND = "wingo.management.commands.run_wingo_scheduler"


def test_tick_opens_round_when_none_live():
    result = run_scheduler_tick()
    assert result.opened_round
    assert GameRound.objects.get(status=GameRound.LIVE).round_id == result.opened_round


def test_tick_leaves_running_round_alone(live_round):
    result = run_scheduler_tick(now=live_round.start_time + timedelta(seconds=20))
    assert result.opened_round is None
    assert result.report is None
    assert GameRound.objects.count() == 1


def test_tick_settles_expired_round(user, live_round):
    place_bet(user, "red", Decimal("10"))
    now = live_round.end_time + timedelta(seconds=3)

    result = run_scheduler_tick(now=now)
    again = run_scheduler_tick(now=now)

    assert result.report.round_id == live_round.round_id
    assert again.report is None
    assert GameRound.objects.filter(status=GameRound.COMPLETED).count() == 1
    assert GameRound.objects.filter(status=GameRound.LIVE).count() == 1


def test_tick_recovers_stranded_bets(user):
    done = GameRound.objects.create(
        round_id="G1",
        start_time=timezone.now() - timedelta(minutes=2),
        end_time=timezone.now() - timedelta(minutes=1),
        status=GameRound.COMPLETED,
        winning_color="violet",
        winning_number=5,
    )
    Bet.objects.create(user=user, round=done, color="violet", amount=Decimal("40"))

    result = run_scheduler_tick()

    assert result.recovered == 1
    assert Bet.objects.get(user=user).status == Bet.WON
    assert balance_of(user) == Decimal("1080")


def test_command_once_without_lock():
    out = StringIO()
    call_command("run_wingo_scheduler", "--once", "--no-lock", stdout=out)
    assert "Opened round" in out.getvalue()
    assert GameRound.objects.filter(status=GameRound.LIVE).exists()


def test_command_exits_when_lock_is_held(monkeypatch):
    lock = MagicMock()
    lock.acquire.return_value = False
    monkeypatch.setattr(f"{COMMAND}.RedisSchedulerLock", lambda *args, **kwargs: lock)

    out = StringIO()
    call_command("run_wingo_scheduler", "--once", stdout=out)

    assert "Another scheduler already running" in out.getvalue()
    assert not GameRound.objects.exists()
    lock.release.assert_not_called()


def test_command_releases_lock(monkeypatch):
    lock = MagicMock()
    lock.acquire.return_value = True
    lock.renew.return_value = True
    monkeypatch.setattr(f"{COMMAND}.RedisSchedulerLock", lambda *args, **kwargs: lock)
    monkeypatch.setattr(f"{COMMAND}.signal.signal", lambda *args: None)

    call_command("run_wingo_scheduler", "--once", stdout=StringIO())

    assert GameRound.objects.filter(status=GameRound.LIVE).exists()
    lock.release.assert_called_once()


def test_recover_command(user):
    out = StringIO()
    call_command("recover_pending_bets", stdout=out)
    assert "Settled 0 pending bet(s)" in out.getvalue()


def test_redis_lock_token_names_the_holder():
    client = MagicMock()
    client.set.return_value = True
    renew_script = MagicMock(return_value=1)
    release_script = MagicMock(return_value=0)
    client.register_script.side_effect = [renew_script, release_script]
    lock = RedisSchedulerLock("wingo:test", 30, client=client)

    assert lock.token.startswith(f"{socket.gethostname()}:{os.getpid()}:")
    assert lock.acquire()
    client.set.assert_called_with("wingo:test", lock.token, nx=True, px=30000)

    assert lock.renew()
    renew_script.assert_called_with(keys=["wingo:test"], args=[lock.token, 30000])

    # someone else holds the key now
    assert lock.release() is False
    release_script.assert_called_with(keys=["wingo:test"], args=[lock.token])


def test_command_reports_current_holder(monkeypatch):
    lock = MagicMock()
    lock.acquire.return_value = False
    lock.holder.return_value = "worker-2:4242:abcd1234"
    monkeypatch.setattr(f"{COMMAND}.RedisSchedulerLock", lambda *args, **kwargs: lock)

    out = StringIO()
    call_command("run_wingo_scheduler", stdout=out)

    assert "worker-2:4242:abcd1234" in out.getvalue()


def test_heartbeat_raises_when_lock_lost():
    lock = MagicMock()
    lock.renew.return_value = False
    heartbeat = LockHeartbeat(lock, every_seconds=0)

    with pytest.raises(LockLost):
        heartbeat.tick()
