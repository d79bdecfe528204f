"""Write opening ledger rows for consumables that have none."""

from django.core.management.base import BaseCommand

from assets.models import Asset
from assets.services.stock import initialise_stock
from itdesk.exceptions import ServiceError


class Command(BaseCommand):
    help = (
        "Create the 'initial' stock transaction for consumables with "
        "stock on hand and no ledger yet"
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the assets that would be initialised",
        )

    def handle(self, *args, **options):
        pending = Asset.objects.filter(
            is_consumable=True,
            quantity__gt=0,
            stock_transactions__isnull=True,
        ).order_by("asset_id")

        created = 0
        for asset in pending:
            if options["dry_run"]:
                self.stdout.write(f"Would initialise: {asset.asset_id}")
                continue
            try:
                txn = initialise_stock(asset)
            except ServiceError as exc:
                self.stderr.write(f"Skipped {asset.asset_id}: {exc}")
                continue
            created += 1
            self.stdout.write(
                f"Initialised: {asset.asset_id} ({txn.quantity_after})"
            )

        if not options["dry_run"]:
            self.stdout.write(
                self.style.SUCCESS(f"{created} asset(s) initialised")
            )
