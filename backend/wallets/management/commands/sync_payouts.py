from django.core.management.base import BaseCommand

from wallets.providers import ProviderError
from wallets.withdrawals import sync_payout_statuses


class Command(BaseCommand):
    help = "Poll the payout provider for every in-flight withdrawal and apply its status"

    def handle(self, *args, **options):
        try:
            checked = sync_payout_statuses()
        except ProviderError as e:
            self.stdout.write(self.style.ERROR(f"Payout provider unavailable: {e}"))
            return
        self.stdout.write(self.style.SUCCESS(f"Checked {checked} payout(s)"))
