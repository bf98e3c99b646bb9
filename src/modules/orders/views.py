"""Order API views.

Exposes ``OrderService`` and ``OrderRetentionService`` via HTTP using DRF
ViewSets.  Domain exceptions are caught and translated into their HTTP
status codes; the views never swallow generic exceptions.

Every endpoint accepts ``?store=physical|virtual`` (default ``physical``)
to pick the pair of collections it works on.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import DomainError, domain_error_response
from modules.core.permissions import CanManageOrders
from modules.core.repositories.django_store import DjangoDocumentStore
from modules.orders.constants import COLLECTIONS_BY_SCOPE, OrderCollections, StoreScope
from modules.orders.dtos import (
    BulkOperationResult,
    ClientInfo,
    CreateOrderDTO,
    CreateOrderItemDTO,
    UpdateOrderDTO,
)
from modules.orders.exceptions import PartialFailure
from modules.orders.serializers import (
    BulkOrderIdsSerializer,
    BulkPurgeSerializer,
    BulkResultSerializer,
    CreateOrderSerializer,
    DeletedOrderSerializer,
    OrderSerializer,
    PurgeConfirmationSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderRetentionService, OrderService

TRUTHY = {"1", "true", "yes"}


def resolve_collections(request: Request) -> OrderCollections:
    """Map the ``store`` query parameter onto its collections."""
    scope = request.query_params.get("store", StoreScope.PHYSICAL.value)
    if scope not in COLLECTIONS_BY_SCOPE:
        raise ValidationError(
            {"store": [f"Unknown store '{scope}'. Use one of: {', '.join(StoreScope.values)}."]}
        )
    return COLLECTIONS_BY_SCOPE[scope]


def actor_of(request: Request) -> Optional[str]:
    user = request.user
    if user is None or not user.is_authenticated:
        return None
    return user.get_username()


def bulk_response(result: BulkOperationResult) -> Response:
    """200 when every id succeeded, 207 with the breakdown otherwise."""
    try:
        result.raise_for_failures()
    except PartialFailure as exc:
        return Response(BulkResultSerializer(exc.result).data, status=exc.status_code)
    return Response(BulkResultSerializer(result).data, status=status.HTTP_200_OK)


class OrderViewSet(GenericViewSet):
    """ViewSet for active orders.

    Does **not** extend ``ModelViewSet``: all store access goes through the
    service layer.  Order ids are free-form document keys.
    """

    lookup_value_regex = "[^/]+"
    serializer_class = OrderSerializer

    def get_permissions(self) -> list[BasePermission]:
        if self.action in {"destroy", "bulk_delete"}:
            return [IsAuthenticated(), CanManageOrders()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Mutations share one throttle scope; reads use the user default."""
        if self.action in {"create", "partial_update", "destroy", "bulk_delete"}:
            self.throttle_scope = "order_mutation"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    def _order_service(self) -> OrderService:
        return OrderService(DjangoDocumentStore(), resolve_collections(self.request))

    def _retention_service(self) -> OrderRetentionService:
        return OrderRetentionService(DjangoDocumentStore(), resolve_collections(self.request))

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            client=ClientInfo(**data.get("client", {})),
            items=[CreateOrderItemDTO(**item) for item in data["items"]],
            price_tier=data.get("price_tier") or None,
            comment=data.get("comment", ""),
            labels=data.get("labels", []),
        )

        try:
            order = self._order_service().create_order(dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Archived orders are hidden unless ``?archived=true``.
        """
        archived = request.query_params.get("archived", "").lower() in TRUTHY
        try:
            orders = self._order_service().list_orders(archived=archived)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(orders, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._order_service().get_order(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # In-place edits
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/ (status, labels, archived, is_starred)."""
        update_serializer = UpdateOrderSerializer(data=request.data)
        update_serializer.is_valid(raise_exception=True)
        dto = UpdateOrderDTO(**update_serializer.validated_data)

        try:
            order = self._order_service().update_order(pk, dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/

        Moves the order to the deleted list; it stays recoverable for
        30 days.
        """
        try:
            deleted = self._retention_service().soft_delete(pk, actor=actor_of(request))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(DeletedOrderSerializer(deleted).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request: Request) -> Response:
        """POST /api/v1/orders/bulk-delete/"""
        serializer = BulkOrderIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._retention_service().soft_delete_bulk(
            serializer.validated_data["ids"], actor=actor_of(request)
        )
        return bulk_response(result)


class DeletedOrderViewSet(GenericViewSet):
    """ViewSet for the deleted-orders list: recovery and permanent purge."""

    lookup_value_regex = "[^/]+"
    serializer_class = DeletedOrderSerializer
    permission_classes = [IsAuthenticated, CanManageOrders]

    def get_throttles(self) -> list[BaseThrottle]:
        if self.action in {"recover", "bulk_recover", "purge", "bulk_purge"}:
            self.throttle_scope = "order_mutation"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    def _service(self) -> OrderRetentionService:
        return OrderRetentionService(DjangoDocumentStore(), resolve_collections(self.request))

    def list(self, request: Request) -> Response:
        """GET /api/v1/deleted-orders/"""
        try:
            deleted = self._service().list_deleted()
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(DeletedOrderSerializer(deleted, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/deleted-orders/{pk}/ (by document key or ``originalId``)."""
        try:
            deleted = self._service().get_deleted(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(DeletedOrderSerializer(deleted).data)

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def recover(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deleted-orders/{pk}/recover/"""
        try:
            order = self._service().recover(pk, actor=actor_of(request))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="bulk-recover")
    def bulk_recover(self, request: Request) -> Response:
        """POST /api/v1/deleted-orders/bulk-recover/"""
        serializer = BulkOrderIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._service().recover_bulk(
            serializer.validated_data["ids"], actor=actor_of(request)
        )
        return bulk_response(result)

    # ------------------------------------------------------------------
    # Permanent deletion
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def purge(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deleted-orders/{pk}/purge/  body: ``{"confirm": true}``"""
        PurgeConfirmationSerializer(data=request.data).is_valid(raise_exception=True)
        try:
            self._service().purge_permanently(pk, actor=actor_of(request))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="bulk-purge")
    def bulk_purge(self, request: Request) -> Response:
        """POST /api/v1/deleted-orders/bulk-purge/  body: ``{"ids": [...], "confirm": true}``"""
        serializer = BulkPurgeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._service().purge_permanently_bulk(
            serializer.validated_data["ids"], actor=actor_of(request)
        )
        return bulk_response(result)

    @action(detail=False, methods=["get"], url_path="eligible-for-purge")
    def eligible_for_purge(self, request: Request) -> Response:
        """GET /api/v1/deleted-orders/eligible-for-purge/"""
        try:
            ids = self._service().list_eligible_for_purge()
        except DomainError as exc:
            return domain_error_response(exc)
        return Response({"ids": ids})
