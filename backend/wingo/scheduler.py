import logging
from dataclasses import dataclass

from django.utils import timezone

from .engine import recover_unsettled_bets, settle_round
from .services import current_live_round, open_round

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    recovered: int = 0
    opened_round: str = None
    report: object = None


def run_scheduler_tick(now=None) -> TickResult:
    """
    One scheduler pass: retry stranded bets, then open a round if none is
    live or settle the live one if it has expired. Safe to run from
    several processes at once.
    """
    now = now or timezone.now()
    result = TickResult(recovered=recover_unsettled_bets(now=now))

    live = current_live_round()
    if live is None:
        result.opened_round = open_round(now).round_id
    elif now >= live.end_time:
        result.report = settle_round(live, now=now)
    return result
