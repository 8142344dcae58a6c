"""Payment DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import MONEY
from modules.payments.models import Payment


class ConfirmPaymentSerializer(serializers.Serializer):
    """What the client forwards after the gateway reports success."""

    order_ref = serializers.CharField(max_length=64)
    gateway_payment_id = serializers.CharField(max_length=128)
    gateway_order_id = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=128
    )
    signature = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=256
    )
    amount = serializers.DecimalField(
        **MONEY, required=False, allow_null=True, min_value=0
    )


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "gateway_payment_id",
            "gateway_order_id",
            "amount",
            "currency",
            "is_anomaly",
            "created_at",
        ]
        read_only_fields = fields
