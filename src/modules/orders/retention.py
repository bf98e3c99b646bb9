"""Retention policy: the date math behind soft delete and eviction.

Pure functions only.  The service layer, the Celery sweep and the
``purge_expired_orders`` command all decide eligibility through
:func:`is_eligible_for_purge`, so no caller re-implements the window.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Mapping, Optional

from django.utils.dateparse import parse_datetime

from modules.orders.constants import DELETION_ENVELOPE_FIELDS, RETENTION_PERIOD, OrderStatus

SECONDS_PER_DAY = 24 * 60 * 60


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Read a stored timestamp into an aware ``datetime``.

    Accepts ``datetime`` objects, ISO-8601 strings and exported
    ``{"seconds": ...}`` / ``{"_seconds": ...}`` mappings.  Naive values are
    taken as UTC.  Anything unreadable yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            return None
        if parsed is None:
            return None
    elif isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=dt_timezone.utc)
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def build_deletion_envelope(
    data: Mapping[str, Any],
    original_id: str,
    now: datetime,
    deleted_by: Optional[str] = None,
) -> Dict[str, Any]:
    """Return the Deleted-collection copy of an active order."""
    deleted = {
        key: value for key, value in data.items() if key not in DELETION_ENVELOPE_FIELDS
    }
    deleted["status"] = deleted.get("status") or OrderStatus.NEW.value
    deleted["deletedAt"] = format_timestamp(now)
    deleted["retentionDate"] = format_timestamp(now + RETENTION_PERIOD)
    deleted["originalId"] = original_id
    if deleted_by:
        deleted["deletedBy"] = deleted_by
    return deleted


def strip_deletion_envelope(
    data: Mapping[str, Any], now: datetime, restore_key: Optional[str] = None
) -> Dict[str, Any]:
    """Return the Active-collection copy of a deleted order.

    An embedded ``id`` is rewritten to *restore_key* so it matches the key
    the order is restored under; without a *restore_key* it is dropped.
    """
    restored = {
        key: value
        for key, value in data.items()
        if key not in DELETION_ENVELOPE_FIELDS and key != "id"
    }
    if "id" in data and restore_key:
        restored["id"] = restore_key
    restored["restoredAt"] = format_timestamp(now)
    return restored


def effective_retention_date(data: Mapping[str, Any]) -> Optional[datetime]:
    """``retentionDate`` when stored, otherwise ``deletedAt + 30 days``."""
    retention_date = parse_timestamp(data.get("retentionDate"))
    if retention_date is not None:
        return retention_date
    deleted_at = parse_timestamp(data.get("deletedAt"))
    if deleted_at is None:
        return None
    return deleted_at + RETENTION_PERIOD


def is_eligible_for_purge(data: Mapping[str, Any], now: datetime) -> bool:
    """``now >= retention date``.  Records with no readable date never qualify."""
    retention_date = effective_retention_date(data)
    if retention_date is None:
        return False
    return now >= retention_date


def days_until_purge(data: Mapping[str, Any], now: datetime) -> int:
    """Whole days left in the window, rounded up and never negative."""
    retention_date = effective_retention_date(data)
    if retention_date is None:
        return 0
    remaining = (retention_date - now).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(remaining))
