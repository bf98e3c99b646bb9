"""Generic document store interface (Dependency Inversion Principle).

Provides ``IDocumentStore``, the four keyed-collection primitives the
service layer composes (``get``, ``list``, ``put``, ``delete``) plus an
``atomic`` unit-of-work hook.  Service-layer code depends on this
abstraction, never on Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ContextManager, Dict, List, Optional


@dataclass(frozen=True)
class StoredDocument:
    """A document read back from a collection, with its key."""

    key: str
    data: Dict[str, Any] = field(default_factory=dict)


class IDocumentStore(ABC):
    """Keyed JSON document store contract.

    Implementations raise ``modules.core.exceptions.StoreError`` for any
    I/O or transport failure.  A missing document is **not** an error:
    ``get`` returns ``None`` and ``delete`` returns ``False``.
    """

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[StoredDocument]:
        """Direct key lookup."""

    @abstractmethod
    def list(
        self, collection: str, query: Optional[Dict[str, Any]] = None
    ) -> List[StoredDocument]:
        """Return every document in *collection* whose data matches *query*.

        ``query`` is a flat mapping of top-level data fields to the exact
        value they must hold.
        """

    @abstractmethod
    def put(self, collection: str, key: str, data: Dict[str, Any]) -> StoredDocument:
        """Create or fully replace the document stored under *key*."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        """Remove a document.  Returns ``False`` when nothing was stored."""

    @abstractmethod
    def atomic(self) -> ContextManager[Any]:
        """Unit of work spanning several calls.

        Stores without multi-document transactions return a no-op context;
        callers must still order their writes so a crash mid-way leaves a
        recoverable state.
        """
