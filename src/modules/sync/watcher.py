"""Polling watcher for the sync-timestamp store.

The first read becomes the baseline and never notifies.  Each later poll
compares every sync type with its last-seen value; a distinct non-empty
value notifies ``on_change(sync_type, timestamp)`` exactly once (by default
the ``sync_timestamp_changed`` signal is sent) and then
becomes the new baseline.  Re-setting the same value notifies nothing.

The watcher runs on a daemon thread and sleeps on a ``threading.Event``,
so ``stop()`` wakes it immediately.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Protocol

import structlog
from django.conf import settings
from django.db import connections

from modules.core.exceptions import StoreError
from modules.sync.constants import SyncType
from modules.sync.dtos import SyncTimestampsDTO
from modules.sync.signals import sync_timestamp_changed

logger = structlog.get_logger(__name__)


class TimestampSource(Protocol):
    def get(self) -> SyncTimestampsDTO: ...


class SyncTimestampWatcher:
    def __init__(
        self,
        source: TimestampSource,
        on_change: Optional[Callable[[str, str], None]] = None,
        interval: Optional[float] = None,
    ) -> None:
        self._source = source
        self._on_change = on_change or send_change_signal
        self._interval = (
            interval if interval is not None else settings.SYNC_TIMESTAMP_POLL_INTERVAL
        )
        self._baseline: Dict[str, Optional[str]] = {}
        self._primed = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def baseline(self) -> Dict[str, Optional[str]]:
        return dict(self._baseline)

    def prime(self) -> None:
        """Adopt the current values as the baseline without notifying."""
        snapshot = self._source.get()
        self._baseline = snapshot.as_dict()
        self._primed = True
        logger.debug("sync_watcher.primed", **self._baseline)

    def poll_once(self) -> List[str]:
        """Run one detection cycle.  Returns the sync types that changed.

        Store failures are logged and the baseline is left untouched, so a
        change that happened meanwhile is reported on a later poll.
        """
        try:
            if not self._primed:
                self.prime()
                return []
            snapshot = self._source.get().as_dict()
        except StoreError as exc:
            logger.warning("sync_watcher.poll_failed", error=exc.detail)
            return []

        changed: List[str] = []
        for sync_type in SyncType.values:
            value = snapshot.get(sync_type)
            if value is None or value == self._baseline.get(sync_type):
                continue
            try:
                self._on_change(sync_type, value)
            except Exception:
                logger.exception("sync_watcher.refresh_failed", sync_type=sync_type)
            self._baseline[sync_type] = value
            changed.append(sync_type)

        if changed:
            logger.info("sync_watcher.changes_detected", sync_types=changed)
        return changed

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run_in_thread, name="SyncTimestampWatcher", daemon=True
            )
            self._thread.start()
        logger.info("sync_watcher.started", interval=self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop polling.  Safe to call more than once, or from ``on_change``."""
        with self._lock:
            thread, self._thread = self._thread, None
            self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("sync_watcher.stopped")

    def run_forever(self) -> None:
        """Poll on the calling thread until ``stop()`` is called."""
        self._stop_event.clear()
        self._run()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self._interval)

    def _run_in_thread(self) -> None:
        try:
            self._run()
        finally:
            connections.close_all()

    def __enter__(self) -> SyncTimestampWatcher:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()


def send_change_signal(sync_type: str, timestamp: str) -> None:
    """Default refresh action: broadcast ``sync_timestamp_changed``."""
    sync_timestamp_changed.send(
        sender=SyncTimestampWatcher, sync_type=sync_type, timestamp=timestamp
    )
