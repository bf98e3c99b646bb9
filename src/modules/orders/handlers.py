"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderPurged,
    OrderRecovered,
    OrderSoftDeleted,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.created",
            order_id=event.aggregate_id,
            collection=event.payload.get("collection"),
        )


class OrderSoftDeletedHandler(IEventHandler[OrderSoftDeleted]):
    def handle(self, event: OrderSoftDeleted) -> None:
        logger.info(
            "order.soft_deleted",
            order_id=event.aggregate_id,
            collection=event.payload.get("collection"),
            actor=event.payload.get("actor"),
            retention_date=event.payload.get("retention_date"),
        )


class OrderRecoveredHandler(IEventHandler[OrderRecovered]):
    def handle(self, event: OrderRecovered) -> None:
        logger.info(
            "order.recovered",
            order_id=event.aggregate_id,
            collection=event.payload.get("collection"),
            actor=event.payload.get("actor"),
        )


class OrderPurgedHandler(IEventHandler[OrderPurged]):
    def handle(self, event: OrderPurged) -> None:
        logger.warning(
            "order.purged",
            order_id=event.aggregate_id,
            collection=event.payload.get("collection"),
            actor=event.payload.get("actor"),
        )


order_created_handler = OrderCreatedHandler()
order_soft_deleted_handler = OrderSoftDeletedHandler()
order_recovered_handler = OrderRecoveredHandler()
order_purged_handler = OrderPurgedHandler()
