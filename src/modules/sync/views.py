"""Sync-timestamp API.

``GET`` is what every open admin tab polls; ``POST`` is called by whoever
finished a catalog or web-photo sync.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView

from modules.core.exceptions import DomainError, domain_error_response
from modules.core.permissions import CanManageOrders
from modules.core.repositories.django_store import DjangoDocumentStore
from modules.sync.serializers import (
    SetSyncTimestampSerializer,
    SyncTimestampsSerializer,
    SyncWriteResultSerializer,
)
from modules.sync.services import SyncTimestampStore


class SyncTimestampView(APIView):
    def get_permissions(self) -> list[BasePermission]:
        if self.request.method == "POST":
            return [IsAuthenticated(), CanManageOrders()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "sync_polling" if self.request.method == "GET" else None
        return super().get_throttles()

    def get(self, request: Request) -> Response:
        """GET /api/v1/sync-timestamps/"""
        try:
            timestamps = SyncTimestampStore(DjangoDocumentStore()).get()
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(SyncTimestampsSerializer(timestamps).data)

    def post(self, request: Request) -> Response:
        """POST /api/v1/sync-timestamps/  body: ``{"type", "timestamp"}``"""
        serializer = SetSyncTimestampSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = SyncTimestampStore(DjangoDocumentStore()).set(
                data["type"], data["timestamp"]
            )
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(SyncWriteResultSerializer(result).data, status=status.HTTP_200_OK)
