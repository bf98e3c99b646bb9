"""Unit tests for the domain event primitives."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from modules.orders.events import OrderSoftDeleted

pytestmark = pytest.mark.unit


def test_event_name_and_defaults():
    event = OrderSoftDeleted(aggregate_id="ord-1", payload={"actor": "ana"})

    assert event.event_name == "OrderSoftDeleted"
    assert event.aggregate_id == "ord-1"
    assert event.payload == {"actor": "ana"}
    assert event.occurred_on.tzinfo is not None


def test_events_get_distinct_ids():
    first = OrderSoftDeleted(aggregate_id="ord-1")
    second = OrderSoftDeleted(aggregate_id="ord-1")

    assert first.event_id != second.event_id


def test_events_are_immutable():
    event = OrderSoftDeleted(aggregate_id="ord-1")

    with pytest.raises(FrozenInstanceError):
        event.aggregate_id = "ord-2"
