"""Return DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.returns.models import Return


class RequestReturnSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000)


class ReturnTransitionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class ReturnSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Return
        fields = [
            "id",
            "order_id",
            "order_number",
            "owner_id",
            "reason",
            "status",
            "staff_notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
