"""Domain events for the Orders bounded context.

Payload keys:

- ``collection``: the collection the order left (or was purged from).
- ``actor``: who triggered the change, when known.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is written to an active collection."""


@dataclass(frozen=True)
class OrderSoftDeleted(DomainEvent):
    """Raised when an order is moved to its deleted collection."""


@dataclass(frozen=True)
class OrderRecovered(DomainEvent):
    """Raised when a deleted order is restored to its active collection."""


@dataclass(frozen=True)
class OrderPurged(DomainEvent):
    """Raised when a deleted order is destroyed for good."""
