"""Unit tests for OrderService with an in-memory store."""

from __future__ import annotations

import re
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from modules.core.exceptions import DomainError
from modules.orders.constants import COLLECTIONS_BY_SCOPE
from modules.orders.dtos import (
    ClientInfo,
    CreateOrderDTO,
    CreateOrderItemDTO,
    UpdateOrderDTO,
)
from modules.orders.events import OrderCreated
from modules.orders.exceptions import OrderNotFound
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit

COLLECTIONS = COLLECTIONS_BY_SCOPE["virtual"]


@pytest.fixture()
def bus():
    return MagicMock()


@pytest.fixture()
def service(memory_store, fixed_now, bus):
    return OrderService(memory_store, COLLECTIONS, clock=lambda: fixed_now, event_bus=bus)


def _dto(**overrides) -> CreateOrderDTO:
    data = {
        "client": ClientInfo(name="Ana", phone="3001234567"),
        "items": [
            CreateOrderItemDTO(
                product_id="P-1", name="Bolso", quantity=2, unit_price=Decimal("25000")
            ),
            CreateOrderItemDTO(
                product_id="P-2", name="Correa", quantity=1, unit_price=Decimal("12500.50")
            ),
        ],
        "price_tier": "Precio 1",
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


class TestCreateOrder:
    def test_writes_structured_order(self, service, memory_store, bus, fixed_now):
        view = service.create_order(_dto())

        assert re.fullmatch(r"ORD-20260301-[A-Z0-9]{6}", view.id)
        assert memory_store.keys(COLLECTIONS.active) == [view.id]
        stored = memory_store.collections[COLLECTIONS.active][view.id]
        assert stored["status"] == "new"
        assert stored["timestamp"] == fixed_now.isoformat()
        assert stored["totalAmount"] == 62500.5
        assert view.total == Decimal("62500.5")
        assert view.record_kind == "structured"
        bus.publish.assert_called_once()
        assert isinstance(bus.publish.call_args.args[0], OrderCreated)

    def test_retries_on_id_collision(self, service, memory_store):
        with patch(
            "modules.orders.services.secrets.choice", side_effect=list("AAAAAA" "AAAAAA" "BBBBBB")
        ):
            memory_store.seed(COLLECTIONS.active, "ORD-20260301-AAAAAA", {})
            view = service.create_order(_dto())

        assert view.id == "ORD-20260301-BBBBBB"

    def test_gives_up_after_repeated_collisions(self, service, memory_store):
        memory_store.seed(COLLECTIONS.active, "ORD-20260301-AAAAAA", {})

        with patch("modules.orders.services.secrets.choice", return_value="A"):
            with pytest.raises(DomainError):
                service.create_order(_dto())


class TestUpdateOrder:
    def test_applies_only_sent_fields(self, service, memory_store):
        memory_store.seed(
            COLLECTIONS.active, "ord-1", {"status": "new", "labels": ["x"], "totalAmount": 10}
        )

        view = service.update_order("ord-1", UpdateOrderDTO(status="shipped", is_starred=True))

        stored = memory_store.collections[COLLECTIONS.active]["ord-1"]
        assert stored["status"] == "shipped"
        assert stored["isStarred"] is True
        assert stored["labels"] == ["x"]
        assert view.is_starred is True

    def test_legacy_pending_status_is_stored_as_new(self, service, memory_store):
        memory_store.seed(COLLECTIONS.active, "ord-1", {"status": "confirmed"})

        service.update_order("ord-1", UpdateOrderDTO(status="pending"))

        assert memory_store.collections[COLLECTIONS.active]["ord-1"]["status"] == "new"

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_order("ghost", UpdateOrderDTO(archived=True))


class TestQueries:
    def test_get_order_normalizes(self, service, memory_store):
        memory_store.seed(COLLECTIONS.active, "ord-1", {"orderDetails": "Total: 8.000"})

        assert service.get_order("ord-1").total == Decimal("8000")

    def test_get_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.get_order("ghost")

    def test_list_hides_archived_and_sorts_newest_first(self, service, memory_store):
        memory_store.seed(COLLECTIONS.active, "old", {"timestamp": "2026-01-01T00:00:00+00:00"})
        memory_store.seed(COLLECTIONS.active, "new", {"timestamp": "2026-02-01T00:00:00+00:00"})
        memory_store.seed(COLLECTIONS.active, "undated", {})
        memory_store.seed(COLLECTIONS.active, "archived", {"archived": True})

        assert [view.id for view in service.list_orders()] == ["new", "old", "undated"]
        assert [view.id for view in service.list_orders(archived=True)] == ["archived"]
