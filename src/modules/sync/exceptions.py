"""Sync-timestamp domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError, StoreError

__all__ = ["InvalidSyncType", "InvalidSyncTimestamp", "SyncTimestampWriteFailed", "StoreError"]


class InvalidSyncType(DomainError):
    code = "invalid_sync_type"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid type. Must be "products" or "webphotos".'


class InvalidSyncTimestamp(DomainError):
    code = "invalid_timestamp"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "A non-empty timestamp is required."


class SyncTimestampWriteFailed(DomainError):
    """Neither the local cache nor the shared store accepted the value."""

    code = "sync_write_failed"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The sync timestamp could not be saved anywhere. Try again."
