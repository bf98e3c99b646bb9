"""Authorisation gate for the destructive order-management actions.

Authentication itself (JWT) is handled by DRF; this module only answers
"may this actor delete, recover or purge orders?".
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from rest_framework.permissions import BasePermission


def is_authorized(user: Any) -> bool:
    """Return ``True`` if *user* may manage deleted orders and sync state."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if getattr(user, "is_superuser", False) or getattr(user, "is_staff", False):
        return True
    groups = getattr(user, "groups", None)
    if groups is None:
        return False
    return groups.filter(name=settings.ORDER_MANAGERS_GROUP).exists()


class CanManageOrders(BasePermission):
    """DRF permission wrapping :func:`is_authorized`."""

    message = "You do not have permission to manage orders."

    def has_permission(self, request, view) -> bool:
        return is_authorized(request.user)
