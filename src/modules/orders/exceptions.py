"""Order domain exceptions.

Raised by the Service Layer when a lifecycle rule is violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses; bulk operations record them per id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import status

from modules.core.exceptions import DomainError, StoreError

if TYPE_CHECKING:
    from modules.orders.dtos import BulkOperationResult

__all__ = [
    "OrderNotFound",
    "OrderAlreadyActive",
    "PartialFailure",
    "StoreError",
]


class OrderNotFound(DomainError):
    """No order matches the id, neither by document key nor by ``originalId``."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order not found."


class OrderAlreadyActive(DomainError):
    """Recovery was requested for an order that is already in the active list."""

    code = "already_active"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This order is not deleted; it is already in the main order list."


class PartialFailure(DomainError):
    """A bulk operation left some ids unprocessed.

    Carries the full per-id breakdown so the caller can re-offer only the
    failed subset.
    """

    code = "partial_failure"
    status_code = status.HTTP_207_MULTI_STATUS

    def __init__(self, result: BulkOperationResult) -> None:
        self.result = result
        super().__init__(
            f"{len(result.failed)} of {result.attempted} orders could not be processed."
        )
