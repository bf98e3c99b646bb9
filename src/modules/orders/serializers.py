"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py`` and returns Pydantic views that the
output serializers below read attribute by attribute.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import LEGACY_STATUS_ALIASES, OrderStatus

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ClientSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, default="", allow_blank=True)
    surname = serializers.CharField(required=False, default="", allow_blank=True)
    phone = serializers.CharField(required=False, default="", allow_blank=True)
    address = serializers.CharField(required=False, default="", allow_blank=True)
    city = serializers.CharField(required=False, default="", allow_blank=True)
    department = serializers.CharField(required=False, default="", allow_blank=True)
    identification = serializers.CharField(required=False, default="", allow_blank=True)


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.CharField(max_length=255)
    name = serializers.CharField(max_length=255)
    brand = serializers.CharField(required=False, default="", allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    selected_color = serializers.CharField(required=False, default="", allow_blank=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    client = ClientSerializer(required=False)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    price_tier = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    comment = serializers.CharField(required=False, default="", allow_blank=True)
    labels = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False, default=list
    )


class UpdateOrderSerializer(serializers.Serializer):
    """In-place edits.  At least one field must be sent."""

    status = serializers.ChoiceField(
        choices=[*OrderStatus.values, *LEGACY_STATUS_ALIASES], required=False
    )
    labels = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )
    archived = serializers.BooleanField(required=False)
    is_starred = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class BulkOrderIdsSerializer(serializers.Serializer):
    ids = serializers.ListField(
        child=serializers.CharField(max_length=255), allow_empty=False, max_length=500
    )


class PurgeConfirmationSerializer(serializers.Serializer):
    """Permanent deletion must be confirmed explicitly."""

    confirm = serializers.BooleanField(required=False, default=False)

    def validate_confirm(self, value: bool) -> bool:
        if value is not True:
            raise serializers.ValidationError(
                "Permanent deletion cannot be undone; send confirm=true to proceed.",
                code="confirmation_required",
            )
        return value


class BulkPurgeSerializer(BulkOrderIdsSerializer, PurgeConfirmationSerializer):
    pass


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class LineItemSerializer(serializers.Serializer):
    product_id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    brand = serializers.CharField(read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    subtotal = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)
    selected_color = serializers.CharField(read_only=True)


class OrderSerializer(serializers.Serializer):
    """Read serializer for a normalised order view."""

    id = serializers.CharField(read_only=True)
    record_kind = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    client = ClientSerializer(read_only=True)
    items = LineItemSerializer(many=True, read_only=True)
    total = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)
    total_source = serializers.CharField(read_only=True)
    price_tier = serializers.CharField(read_only=True, allow_null=True)
    comment = serializers.CharField(read_only=True, allow_null=True)
    brand = serializers.CharField(read_only=True, allow_null=True)
    color = serializers.CharField(read_only=True, allow_null=True)
    labels = serializers.ListField(child=serializers.CharField(), read_only=True)
    archived = serializers.BooleanField(read_only=True)
    is_starred = serializers.BooleanField(read_only=True)


class DeletedOrderSerializer(serializers.Serializer):
    document_id = serializers.CharField(read_only=True)
    original_id = serializers.CharField(read_only=True)
    deleted_at = serializers.DateTimeField(read_only=True, allow_null=True)
    retention_date = serializers.DateTimeField(read_only=True, allow_null=True)
    days_remaining = serializers.IntegerField(read_only=True)
    deleted_by = serializers.CharField(read_only=True, allow_null=True)
    eligible_for_purge = serializers.BooleanField(read_only=True)
    order = OrderSerializer(read_only=True)


class BulkFailureSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    code = serializers.CharField(read_only=True)
    reason = serializers.CharField(read_only=True)


class BulkResultSerializer(serializers.Serializer):
    succeeded = serializers.ListField(child=serializers.CharField(), read_only=True)
    failed = BulkFailureSerializer(many=True, read_only=True)
    duplicates = serializers.ListField(child=serializers.CharField(), read_only=True)
