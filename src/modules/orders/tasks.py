"""Asynchronous tasks for the orders module."""

import structlog
from celery import shared_task
from django.utils import timezone

from modules.core.repositories.django_store import DjangoDocumentStore
from modules.orders.constants import COLLECTIONS_BY_SCOPE
from modules.orders.services import OrderRetentionService

logger = structlog.get_logger(__name__)


@shared_task(name="orders.sweep_expired_orders")
def sweep_expired_orders():
    """Daily eviction sweep over every store scope.

    Interrupted moves are reconciled first so a half-moved order is never
    purged from the wrong side.  Per-id failures are reported in the
    result and left for the next run.
    """
    now = timezone.now()
    store = DjangoDocumentStore()
    summary = {}

    for scope, collections in COLLECTIONS_BY_SCOPE.items():
        service = OrderRetentionService(store, collections, clock=lambda: now)
        reconciled = service.reconcile_duplicates()
        eligible = service.list_eligible_for_purge(now)
        result = service.purge_permanently_bulk(eligible, actor="retention-sweep")
        summary[str(scope)] = {
            "reconciled": len(reconciled),
            "purged": len(result.succeeded),
            "failed": result.failed_ids,
        }
        logger.info(
            "retention_sweep.scope_completed",
            scope=str(scope),
            reconciled=len(reconciled),
            purged=len(result.succeeded),
            failed=len(result.failed),
        )

    return summary
