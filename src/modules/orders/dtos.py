"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO`` / ``UpdateOrderDTO``: inputs for active-order use cases.
- ``NormalizedOrderView``: the single reconciled view of any order record.
- ``DeletedOrderView``: a normalised view plus its deletion envelope.
- ``BulkOperationResult``: per-id outcome of a bulk lifecycle operation.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import LEGACY_STATUS_ALIASES, OrderStatus
from modules.orders.exceptions import PartialFailure


# ---------------------------------------------------------------------------
# Shared value objects
# ---------------------------------------------------------------------------


class ClientInfo(BaseModel):
    """Customer data embedded in an order.  Completeness is never enforced."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    surname: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    department: str = ""
    identification: str = ""


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single line item in a creation request."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    brand: str = ""
    quantity: int
    unit_price: Decimal
    selected_color: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Unit price cannot be negative.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests."""

    model_config = ConfigDict(frozen=True)

    client: ClientInfo = Field(default_factory=ClientInfo)
    items: List[CreateOrderItemDTO]
    price_tier: Optional[str] = None
    comment: str = ""
    labels: List[str] = Field(default_factory=list)

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class UpdateOrderDTO(BaseModel):
    """In-place edits on an active order.  ``None`` means "leave as is"."""

    model_config = ConfigDict(frozen=True)

    status: Optional[str] = None
    labels: Optional[List[str]] = None
    archived: Optional[bool] = None
    is_starred: Optional[bool] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        value = LEGACY_STATUS_ALIASES.get(v.strip().lower(), v.strip().lower())
        if value not in OrderStatus.values:
            raise ValueError(f"Unknown order status '{v}'.")
        return value

    @model_validator(mode="after")
    def at_least_one_change(self):
        if all(
            value is None
            for value in (self.status, self.labels, self.archived, self.is_starred)
        ):
            raise ValueError("Nothing to update.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class NormalizedLineItem(BaseModel):
    """A line item with its unit price already resolved for the order's tier."""

    model_config = ConfigDict(frozen=True)

    product_id: str = ""
    name: str = ""
    brand: str = ""
    quantity: int = 1
    unit_price: Decimal = Decimal("0")
    selected_color: str = ""

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class NormalizedOrderView(BaseModel):
    """Reconciled view of an order, identical for every list/detail/total."""

    model_config = ConfigDict(frozen=True)

    id: str
    record_kind: Literal["legacy", "structured"]
    status: str
    client: ClientInfo
    items: List[NormalizedLineItem]
    total: Decimal
    total_source: Literal["items", "details", "stored"]
    price_tier: Optional[str] = None
    comment: Optional[str] = None
    brand: Optional[str] = None
    color: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    archived: bool = False
    is_starred: bool = False


class DeletedOrderView(BaseModel):
    """A soft-deleted order with its (possibly derived) deletion envelope."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    original_id: str
    deleted_at: Optional[datetime] = None
    retention_date: Optional[datetime] = None
    days_remaining: int = 0
    deleted_by: Optional[str] = None
    eligible_for_purge: bool = False
    order: NormalizedOrderView


class BulkFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    reason: str


class BulkOperationResult(BaseModel):
    """Outcome of a bulk operation: every id is attempted exactly once.

    Repeated ids are attempted on their first occurrence only; every repeat
    is listed in ``duplicates``, so ``requested`` equals the number of ids
    sent.
    """

    model_config = ConfigDict(frozen=True)

    succeeded: List[str] = Field(default_factory=list)
    failed: List[BulkFailure] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def requested(self) -> int:
        return self.attempted + len(self.duplicates)

    @property
    def failed_ids(self) -> List[str]:
        return [failure.id for failure in self.failed]

    @property
    def is_complete(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise ``PartialFailure`` when at least one id failed."""
        if self.failed:
            raise PartialFailure(self)
