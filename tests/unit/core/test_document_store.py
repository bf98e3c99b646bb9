"""Unit tests for the Django-backed document store."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from django.db import DatabaseError, OperationalError

from modules.core.exceptions import StoreError
from modules.core.models import Document
from modules.core.repositories import DjangoDocumentStore

pytestmark = pytest.mark.unit


@pytest.fixture()
def store():
    return DjangoDocumentStore()


class TestReadWrite:
    def test_get_missing_returns_none(self, store):
        assert store.get("orders", "ghost") is None

    def test_put_then_get(self, store):
        store.put("orders", "ord-1", {"status": "new"})

        document = store.get("orders", "ord-1")
        assert document.key == "ord-1"
        assert document.data == {"status": "new"}

    def test_put_replaces_the_whole_document(self, store):
        store.put("orders", "ord-1", {"status": "new", "labels": ["vip"]})
        store.put("orders", "ord-1", {"status": "shipped"})

        assert store.get("orders", "ord-1").data == {"status": "shipped"}
        assert Document.objects.filter(collection="orders", key="ord-1").count() == 1

    def test_returned_data_is_a_copy(self, store):
        payload = {"labels": ["vip"]}
        store.put("orders", "ord-1", payload)
        payload["labels"].append("changed")

        document = store.get("orders", "ord-1")
        document.data["labels"].append("local")
        assert store.get("orders", "ord-1").data == {"labels": ["vip"]}

    def test_list_filters_by_collection_and_query(self, store):
        store.put("deleted_orders", "a", {"originalId": "ord-1"})
        store.put("deleted_orders", "b", {"originalId": "ord-2"})
        store.put("orders", "c", {"originalId": "ord-1"})

        matches = store.list("deleted_orders", {"originalId": "ord-1"})

        assert [document.key for document in matches] == ["a"]
        assert len(store.list("deleted_orders")) == 2

    def test_delete(self, store):
        store.put("orders", "ord-1", {})

        assert store.delete("orders", "ord-1") is True
        assert store.delete("orders", "ord-1") is False
        assert store.get("orders", "ord-1") is None

    def test_atomic_rolls_back(self, store):
        with pytest.raises(RuntimeError):
            with store.atomic():
                store.put("orders", "ord-1", {})
                raise RuntimeError("abort")

        assert store.get("orders", "ord-1") is None


class TestErrorTranslation:
    def test_database_error_becomes_store_error(self, store):
        with patch.object(Document.objects, "filter", side_effect=OperationalError("locked")):
            with pytest.raises(StoreError) as exc_info:
                store.get("orders", "ord-1")

        assert exc_info.value.store_code == "OperationalError"
        assert "(store code: OperationalError)" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, DatabaseError)

    def test_write_failure_is_translated(self, store):
        with patch.object(
            Document.objects, "update_or_create", side_effect=DatabaseError("disk full")
        ):
            with pytest.raises(StoreError, match="Could not write documents in 'orders'"):
                store.put("orders", "ord-1", {})
