"""Document store package."""

from modules.core.repositories.django_store import DjangoDocumentStore
from modules.core.repositories.interfaces import IDocumentStore, StoredDocument

__all__ = ["DjangoDocumentStore", "IDocumentStore", "StoredDocument"]
