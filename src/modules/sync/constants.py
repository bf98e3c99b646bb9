"""Sync-timestamp constants."""

from django.db import models


class SyncType(models.TextChoices):
    PRODUCTS = "products", "Productos"
    WEBPHOTOS = "webphotos", "Fotos web"


SYNC_TIMESTAMPS_COLLECTION = "sync_timestamps"

CACHE_KEY_PREFIX = "sync_timestamps"


def cache_key(sync_type: str) -> str:
    return f"{CACHE_KEY_PREFIX}:{sync_type}"


def pending_cache_key(sync_type: str) -> str:
    """Marks a value this process wrote locally but could not share."""
    return f"{CACHE_KEY_PREFIX}:{sync_type}:pending"
