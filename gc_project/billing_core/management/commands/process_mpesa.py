from django.core.management.base import BaseCommand

from billing_core.services import (build_sms_sender,
                                   process_mobile_money_transactions)


class Command(BaseCommand):
    help = "Runs one sweep over unprocessed mobile-money transactions."

    # Define command-line argument
    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Process at most this many transactions (default: all)",
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE(
            "Processing mobile-money transactions..."))
        counts = process_mobile_money_transactions(
            sender=build_sms_sender(), limit=options["limit"])
        summary = ", ".join(f"{k}={v}" for k, v in counts.items())
        self.stdout.write(self.style.SUCCESS(f"Done: {summary}"))
