"""Django ORM implementation of the document store.

Satisfies ``IDocumentStore`` on top of the ``Document`` table.  Database
errors are translated into ``StoreError`` so the service layer never sees
driver exceptions.
"""

from __future__ import annotations

import copy
import functools
from typing import Any, Callable, ContextManager, Dict, List, Optional, TypeVar

import structlog
from django.db import DatabaseError, transaction

from modules.core.exceptions import StoreError
from modules.core.models import Document
from modules.core.repositories.interfaces import IDocumentStore, StoredDocument

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _translate_errors(operation: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self, collection: str, *args: Any, **kwargs: Any):
            try:
                return func(self, collection, *args, **kwargs)
            except DatabaseError as exc:
                logger.error(
                    "store.operation_failed",
                    operation=operation,
                    collection=collection,
                    error=str(exc),
                )
                raise StoreError(
                    f"Could not {operation} documents in '{collection}'.",
                    store_code=type(exc).__name__,
                ) from exc

        return wrapper  # type: ignore[return-value]

    return decorator


class DjangoDocumentStore(IDocumentStore):
    """Concrete document store backed by Django ORM."""

    @_translate_errors("read")
    def get(self, collection: str, key: str) -> Optional[StoredDocument]:
        document = Document.objects.filter(collection=collection, key=key).first()
        if document is None:
            return None
        return StoredDocument(key=document.key, data=copy.deepcopy(document.data))

    @_translate_errors("list")
    def list(
        self, collection: str, query: Optional[Dict[str, Any]] = None
    ) -> List[StoredDocument]:
        queryset = Document.objects.filter(collection=collection)
        for field_name, value in (query or {}).items():
            queryset = queryset.filter(**{f"data__{field_name}": value})
        return [
            StoredDocument(key=document.key, data=copy.deepcopy(document.data))
            for document in queryset.order_by("created_at", "key")
        ]

    @_translate_errors("write")
    def put(self, collection: str, key: str, data: Dict[str, Any]) -> StoredDocument:
        payload = copy.deepcopy(data)
        Document.objects.update_or_create(
            collection=collection,
            key=key,
            defaults={"data": payload},
        )
        logger.debug("store.document_written", collection=collection, key=key)
        return StoredDocument(key=key, data=copy.deepcopy(payload))

    @_translate_errors("delete")
    def delete(self, collection: str, key: str) -> bool:
        deleted, _ = Document.objects.filter(collection=collection, key=key).delete()
        logger.debug(
            "store.document_deleted", collection=collection, key=key, found=bool(deleted)
        )
        return bool(deleted)

    def atomic(self) -> ContextManager[Any]:
        return transaction.atomic()
