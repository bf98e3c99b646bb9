from __future__ import annotations

import copy
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.core.exceptions import StoreError
from modules.core.repositories.interfaces import IDocumentStore, StoredDocument

User = get_user_model()

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryDocumentStore(IDocumentStore):
    """Dict-backed store for unit tests.

    ``fail_on`` holds ``(operation, collection)`` pairs that raise
    ``StoreError`` instead of running.
    """

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.fail_on: Set[Tuple[str, str]] = set()
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    def _check(self, operation: str, collection: str, key: Optional[str] = None) -> None:
        self.calls.append((operation, collection, key))
        if (operation, collection) in self.fail_on:
            raise StoreError(
                f"Could not {operation} documents in '{collection}'.",
                store_code="unavailable",
            )

    def get(self, collection, key):
        self._check("get", collection, key)
        data = self.collections.get(collection, {}).get(key)
        if data is None:
            return None
        return StoredDocument(key=key, data=copy.deepcopy(data))

    def list(self, collection, query=None):
        self._check("list", collection)
        return [
            StoredDocument(key=key, data=copy.deepcopy(data))
            for key, data in self.collections.get(collection, {}).items()
            if all(data.get(field) == value for field, value in (query or {}).items())
        ]

    def put(self, collection, key, data):
        self._check("put", collection, key)
        self.collections.setdefault(collection, {})[key] = copy.deepcopy(data)
        return StoredDocument(key=key, data=copy.deepcopy(data))

    def delete(self, collection, key):
        self._check("delete", collection, key)
        return self.collections.get(collection, {}).pop(key, None) is not None

    def atomic(self):
        return nullcontext()

    # Test helpers

    def seed(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[key] = copy.deepcopy(data)

    def keys(self, collection: str) -> List[str]:
        return sorted(self.collections.get(collection, {}))


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture()
def fixed_now():
    return FIXED_NOW


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient authenticated as a regular (non-manager) user."""
    client = APIClient()
    user = User.objects.create_user(username="viewer", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def manager_client():
    """APIClient authenticated as a staff user allowed to manage orders."""
    client = APIClient()
    user = User.objects.create_user(
        username="manager", password="testpass123", is_staff=True
    )
    client.force_authenticate(user=user)
    return client
