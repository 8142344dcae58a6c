"""Payment ledger model.

A ``Payment`` row is the server-side record of a gateway capture.
Rows are append-only: every field is frozen after insert, and the unique
index on ``gateway_payment_id`` is what makes reconciliation idempotent.
"""

from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SnapshotModel
from modules.orders.models import MONEY


class Payment(SnapshotModel):
    frozen_fields = (
        "order",
        "gateway_payment_id",
        "gateway_order_id",
        "signature",
        "amount",
        "currency",
        "is_anomaly",
    )

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    gateway_payment_id = models.CharField(max_length=128, unique=True)
    gateway_order_id = models.CharField(max_length=128, blank=True, default="")
    signature = models.CharField(max_length=256, blank=True, default="")
    amount = models.DecimalField(**MONEY, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3)
    is_anomaly = models.BooleanField(
        default=False,
        help_text="Order already had a payment with a different gateway id.",
    )

    class Meta:
        db_table = "payments"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="payments_order_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.gateway_payment_id} ({self.amount} {self.currency})"
