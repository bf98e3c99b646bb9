"""Sync-timestamp store.

A two-key registry (``products``, ``webphotos``) of "last synced at"
markers.  Any client may write; readers poll and compare.  Values are
supplied by the writer and are last-write-wins: there is no server clock
and no history.

Every ``set`` is dual-written:

- the local cache, which is enough for the writer's own next read;
- the shared document store, which makes the value visible to others.

Either write succeeding is a success; neither one rolls the other back.
When only the local write lands, the value is also kept as *pending* in
the cache.  ``get`` prefers a pending value over the shared one until a
later ``set`` of that type reaches the shared store, or until the shared
value is a strictly later timestamp.
"""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Callable, Dict, Optional

import structlog
from django.conf import settings
from django.core.cache import caches
from django.utils.dateparse import parse_datetime

from modules.core.exceptions import StoreError
from modules.sync.constants import (
    SYNC_TIMESTAMPS_COLLECTION,
    SyncType,
    cache_key,
    pending_cache_key,
)
from modules.sync.dtos import SyncTimestampsDTO, SyncWriteResult
from modules.sync.exceptions import (
    InvalidSyncTimestamp,
    InvalidSyncType,
    SyncTimestampWriteFailed,
)
from modules.sync.watcher import SyncTimestampWatcher

if TYPE_CHECKING:
    from django.core.cache.backends.base import BaseCache

    from modules.core.repositories.interfaces import IDocumentStore

logger = structlog.get_logger(__name__)

OnChange = Callable[[str, str], None]


def _as_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        return None
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def is_later(candidate: Optional[str], reference: str) -> bool:
    """``True`` only when both values are datetimes and *candidate* is later."""
    candidate_at, reference_at = _as_datetime(candidate), _as_datetime(reference)
    if candidate_at is None or reference_at is None:
        return False
    return candidate_at > reference_at


class SyncTimestampStore:
    def __init__(self, store: IDocumentStore, cache: Optional[BaseCache] = None) -> None:
        self._store = store
        self._cache = cache if cache is not None else caches[settings.SYNC_TIMESTAMP_CACHE_ALIAS]

    def set(self, sync_type: str, timestamp: str) -> SyncWriteResult:
        """Record *timestamp* as the latest value for *sync_type*.

        Raises:
            InvalidSyncType: *sync_type* is not ``products`` or ``webphotos``.
            InvalidSyncTimestamp: *timestamp* is empty.
            SyncTimestampWriteFailed: both the cache and the shared store failed.
        """
        if sync_type not in SyncType.values:
            raise InvalidSyncType()
        if not isinstance(timestamp, str) or not timestamp.strip():
            raise InvalidSyncTimestamp()
        timestamp = timestamp.strip()
        log = logger.bind(sync_type=sync_type, timestamp=timestamp)

        local_written = True
        try:
            self._cache.set(cache_key(sync_type), timestamp, timeout=None)
        except Exception as exc:
            # Backend-specific client errors (redis, memcached).
            local_written = False
            log.warning("sync_timestamp.local_write_failed", error=str(exc))

        shared_written = True
        try:
            self._store.put(
                SYNC_TIMESTAMPS_COLLECTION,
                sync_type,
                {"type": sync_type, "timestamp": timestamp},
            )
        except StoreError as exc:
            shared_written = False
            log.warning("sync_timestamp.shared_write_failed", error=exc.detail)

        if not (local_written or shared_written):
            log.error("sync_timestamp.write_failed")
            raise SyncTimestampWriteFailed()

        self._mark_pending(sync_type, timestamp if not shared_written else None, log)
        log.info(
            "sync_timestamp.recorded",
            local_written=local_written,
            shared_written=shared_written,
        )
        return SyncWriteResult(
            type=sync_type,
            timestamp=timestamp,
            local_written=local_written,
            shared_written=shared_written,
        )

    def get(self) -> SyncTimestampsDTO:
        """Current value per type.

        A pending local value wins unless the shared value is a later
        timestamp; otherwise the shared store wins and the local cache fills
        any type the shared store has no value for (or every type when it is
        unreachable).

        Raises:
            StoreError: the shared store failed and the cache could not be read.
        """
        shared: Dict[str, str] = {}
        shared_error: Optional[StoreError] = None
        try:
            for document in self._store.list(SYNC_TIMESTAMPS_COLLECTION):
                value = document.data.get("timestamp")
                if document.key in SyncType.values and isinstance(value, str) and value:
                    shared[document.key] = value
        except StoreError as exc:
            shared_error = exc
            logger.warning("sync_timestamp.shared_read_failed", error=exc.detail)

        keys = [pending_cache_key(sync_type) for sync_type in SyncType.values]
        keys += [cache_key(sync_type) for sync_type in SyncType.values if sync_type not in shared]
        try:
            cached = self._cache.get_many(keys)
        except Exception as exc:
            if shared_error is not None:
                raise shared_error from exc
            logger.warning("sync_timestamp.local_read_failed", error=str(exc))
            cached = {}

        current: Dict[str, str] = {}
        for sync_type in SyncType.values:
            value = shared.get(sync_type)
            pending = cached.get(pending_cache_key(sync_type))
            if pending and not is_later(value, pending):
                value = pending
            elif value is None:
                value = cached.get(cache_key(sync_type))
            if value:
                current[sync_type] = value
        return SyncTimestampsDTO(**current)

    def subscribe(self, interval: Optional[float], on_change: OnChange) -> Callable[[], None]:
        """Start a background watcher; returns the function that stops it."""
        watcher = SyncTimestampWatcher(self, on_change, interval=interval)
        watcher.start()
        return watcher.stop

    def _mark_pending(self, sync_type: str, timestamp: Optional[str], log) -> None:
        """Keep *timestamp* as pending, or clear the marker when it is ``None``."""
        try:
            if timestamp is None:
                self._cache.delete(pending_cache_key(sync_type))
            else:
                self._cache.set(pending_cache_key(sync_type), timestamp, timeout=None)
        except Exception as exc:
            # Backend-specific client errors (redis, memcached).
            log.warning("sync_timestamp.pending_marker_failed", error=str(exc))
