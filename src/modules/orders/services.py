"""Order service layer (Use Cases).

``OrderService`` covers the in-place life of an active order (create,
read, status / label / archive / star edits).  ``OrderRetentionService``
owns everything after that: soft delete, recovery, permanent purge, their
bulk forms and the eviction predicate.

Both services work against an ``IDocumentStore`` and a pair of logical
collections (``OrderCollections``), so the same code serves the physical
and the virtual store.

Lifecycle rules enforced:
- An order is in exactly one of Active / Deleted at any time.  Moves write
  the destination first and only then remove the source, inside one
  ``atomic()`` unit of work.
- Purge is only reachable through Deleted.
- Lookups in Deleted fall back to a scan on ``originalId`` when the direct
  key lookup misses (legacy deletions used fresh document ids).
- Bulk operations attempt every id and report per-id outcomes.

Callers must not issue two operations on the same order id concurrently;
the services do no per-id locking.
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

import structlog
from django.utils import timezone

from modules.core.exceptions import DomainError
from modules.orders.constants import ORDER_NUMBER_MAX_RETRIES, OrderStatus
from modules.orders.dtos import (
    BulkFailure,
    BulkOperationResult,
    DeletedOrderView,
    NormalizedOrderView,
)
from modules.orders.events import (
    OrderCreated,
    OrderPurged,
    OrderRecovered,
    OrderSoftDeleted,
)
from modules.orders.exceptions import OrderAlreadyActive, OrderNotFound
from modules.orders.normalization import normalize_order_view
from modules.orders.retention import (
    build_deletion_envelope,
    days_until_purge,
    effective_retention_date,
    format_timestamp,
    is_eligible_for_purge,
    parse_timestamp,
    strip_deletion_envelope,
)
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.core.repositories.interfaces import IDocumentStore, StoredDocument
    from modules.orders.constants import OrderCollections
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def _json_number(value: Decimal) -> Any:
    return int(value) if value == value.to_integral_value() else float(value)


class OrderService:
    """Application service for active-order use cases.

    Receives its store via constructor injection (DIP).
    """

    def __init__(
        self,
        store: IDocumentStore,
        collections: OrderCollections,
        clock: Clock = timezone.now,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._store = store
        self._collections = collections
        self._clock = clock
        self._event_bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> NormalizedOrderView:
        """Write a new structured order to the active collection.

        Raises:
            StoreError: the store could not be read or written.
        """
        now = self._clock()
        items = [
            {
                "productId": item.product_id,
                "name": item.name,
                "brand": item.brand,
                "quantity": item.quantity,
                "unitPrice": _json_number(item.unit_price),
                "selectedColor": item.selected_color,
            }
            for item in dto.items
        ]
        total = sum((item.unit_price * item.quantity for item in dto.items), Decimal("0"))
        data: Dict[str, Any] = {
            "client": dto.client.model_dump(),
            "cartItems": items,
            "totalAmount": _json_number(total),
            "status": OrderStatus.NEW.value,
            "comment": dto.comment,
            "labels": list(dto.labels),
            "archived": False,
            "isStarred": False,
            "timestamp": format_timestamp(now),
        }
        if dto.price_tier:
            data["priceTier"] = dto.price_tier

        with self._store.atomic():
            order_id = self._generate_order_id(now)
            data["id"] = order_id
            stored = self._store.put(self._collections.active, order_id, data)

        logger.info(
            "order.creation_completed",
            order_id=order_id,
            collection=self._collections.active,
            items_count=len(items),
        )
        self._event_bus.publish(
            OrderCreated(aggregate_id=order_id, payload={"collection": self._collections.active})
        )
        return normalize_order_view(stored.data, stored.key)

    def update_order(self, order_id: str, dto: UpdateOrderDTO) -> NormalizedOrderView:
        """Apply in-place edits (status, labels, archived, starred).

        Raises:
            OrderNotFound: no active order has this id.
        """
        with self._store.atomic():
            current = self._store.get(self._collections.active, order_id)
            if current is None:
                raise OrderNotFound(f"Order '{order_id}' not found.")

            data = dict(current.data)
            changes: Dict[str, Any] = {}
            if dto.status is not None:
                changes["status"] = dto.status
            if dto.labels is not None:
                changes["labels"] = list(dto.labels)
            if dto.archived is not None:
                changes["archived"] = dto.archived
            if dto.is_starred is not None:
                changes["isStarred"] = dto.is_starred
            data.update(changes)
            data["updatedAt"] = format_timestamp(self._clock())
            stored = self._store.put(self._collections.active, order_id, data)

        logger.info("order.updated", order_id=order_id, fields=sorted(changes))
        return normalize_order_view(stored.data, stored.key)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> NormalizedOrderView:
        document = self._store.get(self._collections.active, order_id)
        if document is None:
            raise OrderNotFound(f"Order '{order_id}' not found.")
        return normalize_order_view(document.data, document.key)

    def list_orders(self, archived: bool = False) -> List[NormalizedOrderView]:
        """Active orders, newest first.  Archived ones only when asked for."""
        documents = self._store.list(self._collections.active)
        documents.sort(key=_sort_timestamp, reverse=True)
        views = [normalize_order_view(doc.data, doc.key) for doc in documents]
        return [view for view in views if view.archived == archived]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _generate_order_id(self, now: datetime) -> str:
        """``ORD-YYYYMMDD-XXXXXX``, retried on the (rare) collision."""
        prefix = f"ORD-{now.strftime('%Y%m%d')}-"
        for _ in range(ORDER_NUMBER_MAX_RETRIES):
            candidate = prefix + "".join(
                secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(6)
            )
            if self._store.get(self._collections.active, candidate) is None:
                return candidate
            logger.warning("order.id_collision", order_id=candidate)
        raise DomainError("Could not allocate a unique order number.")


def _sort_timestamp(document: StoredDocument) -> datetime:
    for field_name in ("timestamp", "restoredAt", "createdAt"):
        parsed = parse_timestamp(document.data.get(field_name))
        if parsed is not None:
            return parsed
    return datetime.min.replace(tzinfo=dt_timezone.utc)


class OrderRetentionService:
    """Soft delete, recovery and purge of orders.

    Every mutating single-id method returns only after both collection
    writes succeeded; a ``StoreError`` raised part-way leaves the order in
    at least one collection.
    """

    def __init__(
        self,
        store: IDocumentStore,
        collections: OrderCollections,
        clock: Clock = timezone.now,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._store = store
        self._collections = collections
        self._clock = clock
        self._event_bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    def soft_delete(self, order_id: str, actor: Optional[str] = None) -> DeletedOrderView:
        """Move an active order into the deleted collection.

        If a Deleted copy under the same key already exists (a previous
        attempt died after its first write), only the Active copy is
        removed.

        Raises:
            OrderNotFound: no active order has this id.
            StoreError: a read or write failed.
        """
        active, deleted = self._collections.active, self._collections.deleted
        log = logger.bind(order_id=order_id, collection=active)
        now = self._clock()

        with self._store.atomic():
            current = self._store.get(active, order_id)
            if current is None:
                raise OrderNotFound(f"Order '{order_id}' not found.")

            stored = self._store.get(deleted, order_id)
            if stored is not None:
                log.warning("order.soft_delete_resumed")
            else:
                envelope = build_deletion_envelope(
                    current.data, original_id=order_id, now=now, deleted_by=actor
                )
                stored = self._store.put(deleted, order_id, envelope)
            self._store.delete(active, order_id)

        log.info("order.soft_delete_completed", actor=actor)
        self._event_bus.publish(
            OrderSoftDeleted(
                aggregate_id=order_id,
                payload={
                    "collection": active,
                    "actor": actor,
                    "retention_date": stored.data.get("retentionDate"),
                },
            )
        )
        return self._deleted_view(stored, now)

    def soft_delete_bulk(
        self, order_ids: Iterable[str], actor: Optional[str] = None
    ) -> BulkOperationResult:
        """Soft delete each id; repeats are reported in ``duplicates``."""
        return self._run_bulk(
            "soft_delete", order_ids, lambda order_id: self.soft_delete(order_id, actor)
        )

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def recover(self, order_id: str, actor: Optional[str] = None) -> NormalizedOrderView:
        """Restore a deleted order to the active collection.

        The order is restored under its ``originalId`` when one is
        recorded, otherwise under its deleted document key.  The deletion
        envelope is stripped and ``restoredAt`` is set.

        Raises:
            OrderAlreadyActive: an active order already uses this id.
            OrderNotFound: no deleted order matches by key or ``originalId``.
            StoreError: a read or write failed.
        """
        active, deleted = self._collections.active, self._collections.deleted
        log = logger.bind(order_id=order_id, collection=deleted)
        now = self._clock()

        with self._store.atomic():
            if self._store.get(active, order_id) is not None:
                raise OrderAlreadyActive()

            found = self._find_deleted(order_id)
            restore_key = str(found.data.get("originalId") or found.key)
            if restore_key != order_id and self._store.get(active, restore_key) is not None:
                raise OrderAlreadyActive()

            restored = self._store.put(
                active,
                restore_key,
                strip_deletion_envelope(found.data, now, restore_key),
            )
            self._store.delete(deleted, found.key)

        log.info(
            "order.recovery_completed",
            document_id=found.key,
            restored_as=restore_key,
            actor=actor,
        )
        self._event_bus.publish(
            OrderRecovered(
                aggregate_id=restore_key, payload={"collection": deleted, "actor": actor}
            )
        )
        return normalize_order_view(restored.data, restored.key)

    def recover_bulk(
        self, order_ids: Iterable[str], actor: Optional[str] = None
    ) -> BulkOperationResult:
        """Recover each id; repeats are reported in ``duplicates``."""
        return self._run_bulk(
            "recover", order_ids, lambda order_id: self.recover(order_id, actor)
        )

    # ------------------------------------------------------------------
    # Permanent deletion
    # ------------------------------------------------------------------

    def purge_permanently(self, order_id: str, actor: Optional[str] = None) -> None:
        """Destroy a deleted order.  There is no undo.

        Active orders cannot be purged; soft delete them first.

        Raises:
            OrderNotFound: no deleted order matches by key or ``originalId``.
            StoreError: a read or write failed.
        """
        deleted = self._collections.deleted

        with self._store.atomic():
            found = self._find_deleted(order_id)
            self._store.delete(deleted, found.key)

        logger.info(
            "order.purge_completed",
            order_id=order_id,
            document_id=found.key,
            collection=deleted,
            actor=actor,
        )
        self._event_bus.publish(
            OrderPurged(
                aggregate_id=str(found.data.get("originalId") or found.key),
                payload={"collection": deleted, "actor": actor},
            )
        )

    def purge_permanently_bulk(
        self, order_ids: Iterable[str], actor: Optional[str] = None
    ) -> BulkOperationResult:
        """Purge each id; repeats are reported in ``duplicates``."""
        return self._run_bulk(
            "purge", order_ids, lambda order_id: self.purge_permanently(order_id, actor)
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_eligible_for_purge(self, now: Optional[datetime] = None) -> List[str]:
        """Document keys of every deleted order whose retention window is over."""
        now = now or self._clock()
        return sorted(
            document.key
            for document in self._store.list(self._collections.deleted)
            if is_eligible_for_purge(document.data, now)
        )

    def list_deleted(self, now: Optional[datetime] = None) -> List[DeletedOrderView]:
        """Deleted orders, most recently deleted first."""
        now = now or self._clock()
        views = [
            self._deleted_view(document, now)
            for document in self._store.list(self._collections.deleted)
        ]
        oldest = datetime.min.replace(tzinfo=dt_timezone.utc)
        views.sort(key=lambda view: view.deleted_at or oldest, reverse=True)
        return views

    def get_deleted(self, order_id: str) -> DeletedOrderView:
        return self._deleted_view(self._find_deleted(order_id), self._clock())

    @staticmethod
    def normalize_order_view(raw: Dict[str, Any], document_id: Optional[str] = None) -> NormalizedOrderView:
        return normalize_order_view(raw, document_id)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reconcile_duplicates(self) -> List[str]:
        """Resolve orders left in both collections by an interrupted move.

        The copy with the newer lifecycle timestamp wins: ``restoredAt`` on
        the Active side against ``deletedAt`` on the Deleted side.  When the
        Active copy was never restored, the deletion wins.  Returns the keys
        that were reconciled.
        """
        active, deleted = self._collections.active, self._collections.deleted
        reconciled: List[str] = []

        for document in self._store.list(deleted):
            restore_key = str(document.data.get("originalId") or document.key)
            with self._store.atomic():
                current = self._store.get(active, restore_key)
                if current is None:
                    continue
                restored_at = parse_timestamp(current.data.get("restoredAt"))
                deleted_at = parse_timestamp(document.data.get("deletedAt"))
                if restored_at is not None and (deleted_at is None or restored_at > deleted_at):
                    self._store.delete(deleted, document.key)
                    winner = active
                else:
                    self._store.delete(active, restore_key)
                    winner = deleted
            logger.warning(
                "order.duplicate_reconciled",
                order_id=restore_key,
                document_id=document.key,
                kept=winner,
            )
            reconciled.append(restore_key)
        return reconciled

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find_deleted(self, order_id: str) -> StoredDocument:
        deleted = self._collections.deleted
        document = self._store.get(deleted, order_id)
        if document is not None:
            return document

        for candidate in self._store.list(deleted):
            original_id = candidate.data.get("originalId")
            if candidate.key == order_id or (
                original_id is not None and str(original_id) == order_id
            ):
                logger.info(
                    "order.legacy_lookup_matched",
                    order_id=order_id,
                    document_id=candidate.key,
                    collection=deleted,
                )
                return candidate
        raise OrderNotFound(f"Deleted order '{order_id}' not found.")

    def _deleted_view(self, document: StoredDocument, now: datetime) -> DeletedOrderView:
        data = document.data
        deleted_by = data.get("deletedBy")
        return DeletedOrderView(
            document_id=document.key,
            original_id=str(data.get("originalId") or document.key),
            deleted_at=parse_timestamp(data.get("deletedAt")),
            retention_date=effective_retention_date(data),
            days_remaining=days_until_purge(data, now),
            deleted_by=str(deleted_by) if deleted_by else None,
            eligible_for_purge=is_eligible_for_purge(data, now),
            order=normalize_order_view(data, str(data.get("originalId") or document.key)),
        )

    def _run_bulk(
        self,
        operation: str,
        order_ids: Iterable[str],
        func: Callable[[str], Any],
    ) -> BulkOperationResult:
        succeeded: List[str] = []
        failed: List[BulkFailure] = []
        duplicates: List[str] = []
        seen = set()

        for order_id in order_ids:
            if order_id in seen:
                duplicates.append(order_id)
                continue
            seen.add(order_id)
            try:
                func(order_id)
            except DomainError as exc:
                logger.warning(
                    "order.bulk_item_failed",
                    operation=operation,
                    order_id=order_id,
                    code=exc.code,
                )
                failed.append(BulkFailure(id=order_id, code=exc.code, reason=exc.detail))
            else:
                succeeded.append(order_id)

        logger.info(
            "order.bulk_completed",
            operation=operation,
            succeeded=len(succeeded),
            failed=len(failed),
            duplicates=len(duplicates),
        )
        return BulkOperationResult(succeeded=succeeded, failed=failed, duplicates=duplicates)
