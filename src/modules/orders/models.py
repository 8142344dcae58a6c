"""Order, OrderItem, OrderStatusHistory and Shipment models.

Business rules implemented:
- ``order_number`` is generated once at creation and protected by a
  unique index; it is the alternate lookup key to ``id``.
- OrderItem snapshots the catalog at creation time (``product_name``,
  ``image_url``, ``unit_price``); later catalog changes never reach it.
- Items, amounts, currency, addresses and the order number are frozen
  after insert (``SnapshotModel``).  Only ``status``, ``payment_status``
  and shipments mutate.
- ``total_amount = subtotal + tax_amount + shipping_cost``, computed once.
- Every status change appends an ``OrderStatusHistory`` row.
- Orders are never deleted, only transitioned.
"""

from __future__ import annotations

import secrets
import string
import time
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SnapshotModel
from modules.orders.constants import (
    ORDER_NUMBER_PREFIX,
    ORDER_NUMBER_SUFFIX_LENGTH,
    OrderStatus,
    PaymentStatus,
    ShipmentStatus,
)

logger = structlog.get_logger(__name__)

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

MONEY = {"max_digits": 12, "decimal_places": 2}


class Order(SnapshotModel):
    """Order aggregate root.

    ``order_number`` format: ``ORD-<epoch millis>-<4 chars A-Z0-9>``.
    The UUIDv7 ``id`` is used for internal references and is also the
    QR payload.
    """

    frozen_fields = (
        "order_number",
        "owner",
        "currency",
        "subtotal",
        "tax_amount",
        "shipping_cost",
        "total_amount",
        "shipping_address",
        "billing_address",
        "payment_method",
    )

    order_number: models.CharField = models.CharField(
        max_length=32, unique=True, editable=False
    )
    owner: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    currency: models.CharField = models.CharField(max_length=3, default="USD")
    subtotal: models.DecimalField = models.DecimalField(
        **MONEY, default=Decimal("0.00")
    )
    tax_amount: models.DecimalField = models.DecimalField(
        **MONEY, default=Decimal("0.00")
    )
    shipping_cost: models.DecimalField = models.DecimalField(
        **MONEY, default=Decimal("0.00")
    )
    total_amount: models.DecimalField = models.DecimalField(
        **MONEY, default=Decimal("0.00")
    )
    shipping_address: models.JSONField = models.JSONField()
    billing_address: models.JSONField = models.JSONField()
    payment_method: models.JSONField = models.JSONField()

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["owner", "-created_at"], name="orders_owner_idx"),
        ]

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def is_visible_to(self, requester: Any) -> bool:
        """Staff see every order; customers only their own."""
        if getattr(requester, "is_staff", False):
            return True
        return self.owner_id == getattr(requester, "id", None)

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate ``ORD-<epoch millis>-<XXXX>``."""
        millis = int(time.time() * 1000)
        suffix = "".join(
            secrets.choice(_SUFFIX_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH)
        )
        return f"{ORDER_NUMBER_PREFIX}-{millis}-{suffix}"

    # ------------------------------------------------------------------
    # Validation / persistence
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        expected = self.subtotal + self.tax_amount + self.shipping_cost
        if self.total_amount != expected:
            raise ValidationError(
                {"total_amount": "Total must equal subtotal + tax + shipping."}
            )

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self.order_number = self.generate_order_number()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status}/{self.payment_status})"


class OrderItem(SnapshotModel):
    """Immutable line item snapshot.

    ``product`` is kept as a reference for reporting; display data and
    price come from the snapshot columns, never from the live product.
    """

    frozen_fields = (
        "order",
        "product",
        "variant_ref",
        "product_name",
        "image_url",
        "quantity",
        "unit_price",
        "subtotal",
    )

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    variant_ref: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    product_name: models.CharField = models.CharField(max_length=255)
    image_url: models.CharField = models.CharField(
        max_length=500, blank=True, default=""
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(**MONEY)
    subtotal: models.DecimalField = models.DecimalField(**MONEY, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self._state.adding:
            self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is nullable: ``None`` means the change came from the system
    (e.g. payment reconciliation without an authenticated staff user).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"


class Shipment(BaseModel):
    """Carrier shipment for (part of) an order; managed by staff."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="shipments",
    )
    carrier: models.CharField = models.CharField(max_length=100)
    tracking_ref: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=ShipmentStatus.choices,
        default=ShipmentStatus.PENDING,
    )

    class Meta:
        db_table = "shipments"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.carrier} {self.tracking_ref} ({self.status})"
