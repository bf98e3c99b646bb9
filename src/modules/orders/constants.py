"""Order domain constants.

Defines status choices, price tiers, the retention window and the
collection names used by both admin back-offices.
"""

from dataclasses import dataclass
from datetime import timedelta

from django.db import models


class OrderStatus(models.TextChoices):
    NEW = "new", "Nuevo"
    CONFIRMED = "confirmed", "Confirmado"
    SHIPPED = "shipped", "Enviado"
    DELIVERED = "delivered", "Entregado"
    CANCELLED = "cancelled", "Cancelado"


# Statuses written by older clients, read as their current equivalent.
LEGACY_STATUS_ALIASES: dict[str, str] = {
    "pending": OrderStatus.NEW.value,
}


class PriceTier(models.TextChoices):
    PRICE_1 = "Precio 1", "Precio 1"
    PRICE_2 = "Precio 2", "Precio 2"


PRICE_TIER_ALIASES: dict[str, str] = {
    "1": PriceTier.PRICE_1.value,
    "Precio 1": PriceTier.PRICE_1.value,
    "2": PriceTier.PRICE_2.value,
    "Precio 2": PriceTier.PRICE_2.value,
}

# Item-level price field selected by each tier.
PRICE_TIER_FIELDS: dict[str, str] = {
    PriceTier.PRICE_1.value: "price1",
    PriceTier.PRICE_2.value: "price2",
}

RETENTION_PERIOD = timedelta(days=30)

# Envelope fields attached on soft delete and stripped on recovery.
# ``remainingDays`` was cached by an older back-office and is never trusted.
DELETION_ENVELOPE_FIELDS = (
    "deletedAt",
    "retentionDate",
    "originalId",
    "deletedBy",
    "remainingDays",
)

ORDER_NUMBER_MAX_RETRIES = 5


class StoreScope(models.TextChoices):
    PHYSICAL = "physical", "Tienda física"
    VIRTUAL = "virtual", "Tienda virtual"


@dataclass(frozen=True)
class OrderCollections:
    """The pair of logical collections an order moves between."""

    active: str
    deleted: str


COLLECTIONS_BY_SCOPE: dict[str, OrderCollections] = {
    StoreScope.PHYSICAL.value: OrderCollections(active="orders", deleted="deleted_orders"),
    StoreScope.VIRTUAL.value: OrderCollections(
        active="virtual_orders", deleted="virtual_deleted_orders"
    ),
}
