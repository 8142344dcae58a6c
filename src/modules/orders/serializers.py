"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders import qr
from modules.orders.constants import MAX_ITEM_QUANTITY, ShipmentStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory, Shipment

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """A cart line.  Quantity is optional; non-positive means 1."""

    product_id = serializers.UUIDField()
    variant_ref = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=64
    )
    quantity = serializers.IntegerField(
        required=False, allow_null=True, max_value=MAX_ITEM_QUANTITY
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the checkout payload."""

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shipping_address = serializers.DictField()
    billing_address = serializers.DictField()
    payment_method = serializers.JSONField()
    currency = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=3
    )


class SetStatusSerializer(serializers.Serializer):
    """Staff status override.  Values are validated by the service."""

    status = serializers.CharField()
    payment_status = serializers.CharField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class VerifyQrSerializer(serializers.Serializer):
    payload = serializers.CharField(max_length=64)


class CreateShipmentSerializer(serializers.Serializer):
    carrier = serializers.CharField(max_length=100)
    tracking_ref = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )
    status = serializers.ChoiceField(
        choices=ShipmentStatus.choices, default=ShipmentStatus.PENDING
    )


class UpdateShipmentSerializer(serializers.Serializer):
    carrier = serializers.CharField(required=False, max_length=100)
    tracking_ref = serializers.CharField(
        required=False, allow_blank=True, max_length=100
    )
    status = serializers.ChoiceField(choices=ShipmentStatus.choices, required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for the line-item snapshot."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "variant_ref",
            "product_name",
            "image_url",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class ShipmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shipment
        fields = [
            "id",
            "order_id",
            "carrier",
            "tracking_ref",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Listing row: header, amounts and items (no history)."""

    items = OrderItemSerializer(many=True, read_only=True)
    qr_eligible = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "owner_id",
            "status",
            "payment_status",
            "currency",
            "total_amount",
            "qr_eligible",
            "created_at",
            "items",
        ]
        read_only_fields = fields

    def get_qr_eligible(self, obj: Order) -> bool:
        return qr.is_qr_eligible(obj)


class OrderSerializer(OrderListSerializer):
    """Full order with amounts breakdown, addresses, shipments and history."""

    shipments = ShipmentSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderListSerializer.Meta):
        fields = [
            "id",
            "order_number",
            "owner_id",
            "status",
            "payment_status",
            "currency",
            "subtotal",
            "tax_amount",
            "shipping_cost",
            "total_amount",
            "shipping_address",
            "billing_address",
            "payment_method",
            "qr_eligible",
            "created_at",
            "updated_at",
            "items",
            "shipments",
            "status_history",
        ]
        read_only_fields = fields
