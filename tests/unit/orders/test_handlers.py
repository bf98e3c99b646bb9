"""Unit tests for Orders event handlers and the in-memory bus."""

from __future__ import annotations

import logging

import pytest

from modules.orders.events import OrderPurged, OrderRecovered, OrderSoftDeleted
from modules.orders.handlers import (
    OrderPurgedHandler,
    OrderRecoveredHandler,
    OrderSoftDeletedHandler,
)
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "handler, event, expected",
    [
        (OrderSoftDeletedHandler(), OrderSoftDeleted(aggregate_id="ord-1"), "order.soft_deleted"),
        (OrderRecoveredHandler(), OrderRecovered(aggregate_id="ord-1"), "order.recovered"),
        (OrderPurgedHandler(), OrderPurged(aggregate_id="ord-1"), "order.purged"),
    ],
)
def test_handlers_log_lifecycle_events(caplog, handler, event, expected):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    messages = [record.getMessage() for record in caplog.records]
    assert any(expected in message and "ord-1" in message for message in messages)


def test_purge_is_logged_as_warning(caplog):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrderPurgedHandler().handle(OrderPurged(aggregate_id="ord-1"))

    assert any(record.levelno == logging.WARNING for record in caplog.records)


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    event = OrderSoftDeleted(aggregate_id="ord-1")

    bus.subscribe(OrderSoftDeleted, handler)
    bus.subscribe(OrderSoftDeleted, handler)
    bus.publish(event)
    bus.publish(OrderRecovered(aggregate_id="ord-1"))

    assert handled == [event]


def test_failing_handler_does_not_stop_the_others():
    bus = InMemoryEventBus()
    handled = []

    class BrokenHandler:
        def handle(self, event) -> None:
            raise RuntimeError("boom")

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    bus.subscribe(OrderPurged, BrokenHandler())
    bus.subscribe(OrderPurged, CapturingHandler())
    bus.publish(OrderPurged(aggregate_id="ord-1"))

    assert len(handled) == 1


def test_unsubscribe_stops_delivery():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    bus.subscribe(OrderRecovered, handler)
    bus.unsubscribe(OrderRecovered, handler)
    bus.publish(OrderRecovered(aggregate_id="ord-1"))

    assert handled == []
