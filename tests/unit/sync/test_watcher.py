"""Unit tests for the sync-timestamp watcher."""

from __future__ import annotations

import threading

import pytest

from modules.core.exceptions import StoreError
from modules.sync.dtos import SyncTimestampsDTO
from modules.sync.signals import sync_timestamp_changed
from modules.sync.watcher import SyncTimestampWatcher

pytestmark = pytest.mark.unit


class StubSource:
    """Returns queued snapshots; the last one repeats."""

    def __init__(self, *snapshots):
        self.snapshots = list(snapshots)
        self.fail = False

    def get(self) -> SyncTimestampsDTO:
        if self.fail:
            raise StoreError("Shared store unavailable.", store_code="unavailable")
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]


def _snapshot(products=None, webphotos=None) -> SyncTimestampsDTO:
    return SyncTimestampsDTO(products=products, webphotos=webphotos)


@pytest.fixture()
def changes():
    return []


def _watcher(source, changes, interval=0.01) -> SyncTimestampWatcher:
    return SyncTimestampWatcher(
        source, lambda sync_type, value: changes.append((sync_type, value)), interval=interval
    )


class TestPollOnce:
    def test_first_poll_only_sets_the_baseline(self, changes):
        watcher = _watcher(StubSource(_snapshot(products="t1")), changes)

        assert watcher.poll_once() == []
        assert changes == []
        assert watcher.baseline == {"products": "t1", "webphotos": None}

    def test_new_value_notifies_once(self, changes):
        source = StubSource(_snapshot(products="t1"), _snapshot(products="t2"))
        watcher = _watcher(source, changes)
        watcher.prime()

        assert watcher.poll_once() == ["products"]
        assert watcher.poll_once() == []
        assert changes == [("products", "t2")]

    def test_same_value_does_not_notify(self, changes):
        watcher = _watcher(StubSource(_snapshot(products="t1", webphotos="w1")), changes)
        watcher.prime()

        watcher.poll_once()

        assert changes == []

    def test_types_are_reported_independently(self, changes):
        source = StubSource(
            _snapshot(products="t1", webphotos="w1"),
            _snapshot(products="t1", webphotos="w2"),
        )
        watcher = _watcher(source, changes)
        watcher.prime()

        assert watcher.poll_once() == ["webphotos"]
        assert changes == [("webphotos", "w2")]

    def test_cleared_value_is_not_a_change(self, changes):
        source = StubSource(_snapshot(products="t1"), _snapshot())
        watcher = _watcher(source, changes)
        watcher.prime()

        assert watcher.poll_once() == []

    def test_store_failure_keeps_polling(self, changes):
        source = StubSource(_snapshot(products="t1"), _snapshot(products="t2"))
        watcher = _watcher(source, changes)
        watcher.prime()

        source.fail = True
        assert watcher.poll_once() == []
        source.fail = False
        assert watcher.poll_once() == ["products"]
        assert changes == [("products", "t2")]

    def test_failing_refresh_still_advances_the_baseline(self):
        calls = []

        def refresh(sync_type, value):
            calls.append(value)
            raise RuntimeError("refresh failed")

        source = StubSource(_snapshot(products="t1"), _snapshot(products="t2"))
        watcher = SyncTimestampWatcher(source, refresh, interval=0.01)
        watcher.prime()

        assert watcher.poll_once() == ["products"]
        watcher.poll_once()
        assert calls == ["t2"]


class TestThread:
    def test_start_and_stop(self):
        seen = threading.Event()
        source = StubSource(_snapshot(products="t1"), _snapshot(products="t2"))
        watcher = SyncTimestampWatcher(source, lambda *args: seen.set(), interval=0.01)

        watcher.start()
        try:
            assert watcher.is_running
            assert seen.wait(timeout=2)
        finally:
            watcher.stop(timeout=2)

        assert not watcher.is_running

    def test_stop_is_idempotent(self):
        watcher = SyncTimestampWatcher(StubSource(_snapshot()), lambda *args: None, interval=0.01)

        watcher.stop()
        watcher.start()
        watcher.stop(timeout=2)
        watcher.stop(timeout=2)

        assert not watcher.is_running

    def test_context_manager(self):
        watcher = SyncTimestampWatcher(StubSource(_snapshot()), lambda *args: None, interval=0.01)

        with watcher:
            assert watcher.is_running

        assert not watcher.is_running


def test_default_refresh_sends_signal():
    received = []

    def receiver(sender, sync_type, timestamp, **kwargs):
        received.append((sender, sync_type, timestamp))

    sync_timestamp_changed.connect(receiver)
    try:
        source = StubSource(_snapshot(), _snapshot(webphotos="w1"))
        watcher = SyncTimestampWatcher(source, interval=0.01)
        watcher.prime()
        watcher.poll_once()
    finally:
        sync_timestamp_changed.disconnect(receiver)

    assert received == [(SyncTimestampWatcher, "webphotos", "w1")]


def test_interval_defaults_to_setting(settings):
    settings.SYNC_TIMESTAMP_POLL_INTERVAL = 7.5

    assert SyncTimestampWatcher(StubSource(_snapshot())).interval == 7.5
