import logging
import signal
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from wingo.redis_lock import LockHeartbeat, LockLost, RedisSchedulerLock
from wingo.scheduler import run_scheduler_tick

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Run the Win Go round scheduler with a Redis single-instance lock"

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between ticks (default: WINGO_SCHEDULER_INTERVAL)",
        )
        parser.add_argument(
            "--lock-ttl",
            type=int,
            default=None,
            help="Lock TTL in seconds (default: WINGO_SCHEDULER_LOCK_TTL)",
        )
        parser.add_argument("--once", action="store_true", help="Run a single tick and exit")
        parser.add_argument("--no-lock", action="store_true", help="Skip the Redis lock (local development)")

    def _tick(self):
        result = run_scheduler_tick()
        if result.opened_round:
            self.stdout.write(f"[SCHEDULER] Opened round {result.opened_round}")
        if result.report:
            report = result.report
            self.stdout.write(
                self.style.SUCCESS(
                    f"[SCHEDULER] Settled {report.round_id}: {report.winning_color} "
                    f"(winners={report.winners}, losers={report.losers}, failed={report.failed})"
                )
            )
        if result.recovered:
            self.stdout.write(self.style.WARNING(f"[SCHEDULER] Recovered {result.recovered} bet(s)"))

    def handle(self, *args, **options):
        interval = options["interval"] or settings.WINGO_SCHEDULER_INTERVAL
        lock_ttl = options["lock_ttl"] or settings.WINGO_SCHEDULER_LOCK_TTL

        if options["once"] and options["no_lock"]:
            self._tick()
            return

        lock = None
        heartbeat = None
        if not options["no_lock"]:
            lock = RedisSchedulerLock(ttl_seconds=lock_ttl)
            if not lock.acquire():
                self.stdout.write(
                    self.style.WARNING(f"[SCHEDULER] Another scheduler already running ({lock.holder()}). Exiting.")
                )
                return
            self.stdout.write(self.style.SUCCESS(f"[SCHEDULER] Lock acquired as {lock.token}."))
            heartbeat = LockHeartbeat(lock, every_seconds=max(lock_ttl / 3, 1))

        running = True

        def shutdown(*_):
            nonlocal running
            running = False
            self.stdout.write(self.style.WARNING("[SCHEDULER] Shutdown requested."))

        signal.signal(signal.SIGINT, shutdown)
        signal.signal(signal.SIGTERM, shutdown)

        self.stdout.write(f"[SCHEDULER] Ticking every {interval}s")
        try:
            while running:
                if heartbeat:
                    heartbeat.tick()
                try:
                    self._tick()
                except LockLost:
                    raise
                except Exception:
                    # a failed tick is retried on the next one
                    logger.exception("Scheduler tick failed")
                if options["once"]:
                    break
                time.sleep(interval)
        except LockLost:
            self.stdout.write(self.style.ERROR("[SCHEDULER] Lock lost. Another instance may have taken over."))
        finally:
            if lock is not None:
                lock.release()
                self.stdout.write(self.style.SUCCESS("[SCHEDULER] Lock released. Scheduler stopped."))
