"""Base abstract model and the document table backing every collection.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``Document``: one JSON record inside a named logical collection
  (``orders``, ``deleted_orders``, ``sync_timestamps``, ...).

Orders arrive from several clients (web checkout, two admin back-offices,
an external mobile app) with inconsistent, partially legacy field sets, so
they are kept as schemaless JSON documents addressed by
``(collection, key)`` rather than as relational rows.
"""

from __future__ import annotations

import uuid6
from django.db import models

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Document collections
# ---------------------------------------------------------------------------


class Document(BaseModel):
    """A keyed JSON document inside a logical collection.

    ``key`` is the document id the clients see (e.g. ``ORD-20260101-A1B2C3``
    or a legacy auto-generated id).  It is unique per collection, never
    globally: the same order key may legitimately appear in ``orders`` and
    ``deleted_orders`` for the instant between the two phases of a move.
    """

    collection = models.CharField(max_length=100)
    key = models.CharField(max_length=255)
    data = models.JSONField(default=dict)

    class Meta:
        db_table = "documents"
        ordering = ["collection", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["collection", "key"],
                name="documents_collection_key_uniq",
            ),
        ]
        indexes = [
            models.Index(fields=["collection"], name="documents_collection_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.collection}/{self.key}"
