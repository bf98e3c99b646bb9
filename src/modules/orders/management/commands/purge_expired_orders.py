from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from modules.core.exceptions import StoreError
from modules.core.repositories.django_store import DjangoDocumentStore
from modules.orders.constants import COLLECTIONS_BY_SCOPE, StoreScope
from modules.orders.services import OrderRetentionService


class Command(BaseCommand):
    help = (
        "List deleted orders whose 30-day retention window has ended. "
        "Pass --yes to delete them permanently."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--store",
            choices=StoreScope.values,
            default=StoreScope.PHYSICAL.value,
            help="Which store's deleted orders to sweep.",
        )
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Actually purge. Without it the command only lists candidates.",
        )

    def handle(self, *args, **options):
        collections = COLLECTIONS_BY_SCOPE[options["store"]]
        service = OrderRetentionService(DjangoDocumentStore(), collections)
        now = timezone.now()

        try:
            eligible = service.list_eligible_for_purge(now)
        except StoreError as exc:
            raise CommandError(exc.detail) from exc

        if not eligible:
            self.stdout.write("No deleted orders are past their retention date.")
            return

        for order_id in eligible:
            self.stdout.write(f"  {order_id}")

        if not options["yes"]:
            self.stdout.write(
                self.style.WARNING(
                    f"{len(eligible)} order(s) eligible. Dry run: re-run with --yes "
                    "to delete them permanently."
                )
            )
            return

        result = service.purge_permanently_bulk(eligible, actor="purge_expired_orders")
        for failure in result.failed:
            self.stderr.write(f"  {failure.id}: {failure.reason}")
        self.stdout.write(
            self.style.SUCCESS(
                f"Purged {len(result.succeeded)} order(s); {len(result.failed)} failed."
            )
        )
        if result.failed:
            raise CommandError("Some orders could not be purged.")
