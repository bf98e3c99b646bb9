from __future__ import annotations

from django.core.management.base import BaseCommand

from modules.core.repositories.django_store import DjangoDocumentStore
from modules.sync.services import SyncTimestampStore
from modules.sync.watcher import SyncTimestampWatcher, send_change_signal


class Command(BaseCommand):
    help = (
        "Poll the sync timestamps and announce every change "
        "(sync_timestamp_changed signal). Runs until interrupted."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between polls (default: SYNC_TIMESTAMP_POLL_INTERVAL).",
        )

    def handle(self, *args, **options):
        store = SyncTimestampStore(DjangoDocumentStore())

        def on_change(sync_type: str, timestamp: str) -> None:
            self.stdout.write(f"{sync_type} changed: {timestamp}")
            send_change_signal(sync_type, timestamp)

        watcher = SyncTimestampWatcher(store, on_change, interval=options["interval"])
        self.stdout.write(f"Watching sync timestamps every {watcher.interval}s (Ctrl+C to stop).")
        try:
            watcher.run_forever()
        except KeyboardInterrupt:
            watcher.stop()
            self.stdout.write(self.style.SUCCESS("Stopped."))
