from django.core.management.base import BaseCommand

from wingo.engine import recover_unsettled_bets


class Command(BaseCommand):
    help = "Settle pending bets that belong to already completed rounds"

    def handle(self, *args, **options):
        settled = recover_unsettled_bets()
        self.stdout.write(self.style.SUCCESS(f"Settled {settled} pending bet(s)"))
