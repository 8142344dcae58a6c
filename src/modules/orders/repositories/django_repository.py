"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
The Order aggregate (Order + OrderItems) is persisted inside one
``transaction.atomic()`` block.

Both lookup keys (``id`` and ``order_number``) are unique indexes on the
same ``orders`` table.  Status overrides lock the row with
``select_for_update()``; reconciliation uses a single ``UPDATE``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.exceptions import OrderNumberConflict
from modules.orders.models import Order, OrderItem, OrderStatusHistory, Shipment
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    @staticmethod
    def _base_queryset() -> QuerySet:
        return Order.objects.select_related("owner").prefetch_related(
            "items", "status_history", "shipments"
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys:
        - ``owner_id``, ``currency``, ``shipping_address``,
          ``billing_address``, ``payment_method`` (required)
        - ``items`` (required): list of dicts with ``product_id``,
          ``variant_ref``, ``product_name``, ``image_url``, ``quantity``,
          ``unit_price``
        - ``tax_amount`` / ``shipping_cost`` (optional, default 0)
        """
        items = data["items"]
        subtotal = sum(
            (item["unit_price"] * item["quantity"] for item in items),
            Decimal("0.00"),
        )
        tax_amount = data.get("tax_amount", Decimal("0.00"))
        shipping_cost = data.get("shipping_cost", Decimal("0.00"))

        order = Order(
            owner_id=data["owner_id"],
            currency=data["currency"],
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_cost=shipping_cost,
            total_amount=subtotal + tax_amount + shipping_cost,
            shipping_address=data["shipping_address"],
            billing_address=data["billing_address"],
            payment_method=data["payment_method"],
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        order.order_number = Order.generate_order_number()
        try:
            with transaction.atomic():
                order.save(force_insert=True)
        except IntegrityError as exc:
            if Order.objects.filter(order_number=order.order_number).exists():
                logger.warning(
                    "order.number_conflict", order_number=order.order_number
                )
                raise OrderNumberConflict(
                    f"Order number {order.order_number} already exists."
                ) from exc
            raise

        for item_data in items:
            OrderItem(
                order=order,
                product_id=item_data["product_id"],
                variant_ref=item_data.get("variant_ref") or "",
                product_name=item_data["product_name"],
                image_url=item_data.get("image_url") or "",
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            ).save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        return self._base_queryset().filter(order_number=order_number).first()

    def get_for_update(
        self, id: Optional[str] = None, order_number: Optional[str] = None
    ) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  Returns ``None`` for
        non-existent or malformed keys.
        """
        lookup: Dict[str, Any] = {}
        if id is not None:
            lookup["id"] = id
        if order_number is not None:
            lookup["order_number"] = order_number
        if not lookup:
            return None
        try:
            return Order.objects.select_for_update().filter(**lookup).first()
        except (ValueError, ValidationError):
            return None

    def search(
        self,
        owner_id: Optional[Any] = None,
        term: Optional[str] = None,
        match_owner_email: bool = False,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> QuerySet:
        """Filtered orders, newest first.

        ``term`` matches order number or any line item's product name,
        and the owner's e-mail when ``match_owner_email`` is set.
        """
        queryset = Order.objects.select_related("owner")
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)
        if status:
            queryset = queryset.filter(status=status)
        if payment_status:
            queryset = queryset.filter(payment_status=payment_status)
        if term:
            condition = Q(order_number__icontains=term) | Q(
                items__product_name__icontains=term
            )
            if match_owner_email:
                condition |= Q(owner__email__icontains=term)
            queryset = queryset.filter(condition).distinct()
        return queryset.prefetch_related("items").order_by("-created_at", "-id")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    def save_fields(self, entity: Order, fields: List[str]) -> Order:
        entity.save(update_fields=fields)
        logger.info("order.saved", order_id=str(entity.id), fields=fields)
        return entity

    def mark_paid(self, order_id: UUID) -> bool:
        now = timezone.now()
        moved = Order.objects.filter(id=order_id, status=OrderStatus.PENDING).update(
            status=OrderStatus.PAID,
            payment_status=PaymentStatus.PAID,
            updated_at=now,
        )
        if not moved:
            Order.objects.filter(
                id=order_id,
                payment_status__in=[PaymentStatus.PENDING, PaymentStatus.FAILED],
            ).update(payment_status=PaymentStatus.PAID, updated_at=now)
        logger.info("order.marked_paid", order_id=str(order_id), moved=bool(moved))
        return bool(moved)

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Optional[Any] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            user=user if getattr(user, "pk", None) else None,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    # ------------------------------------------------------------------
    # Shipments
    # ------------------------------------------------------------------

    def create_shipment(self, order_id: UUID, data: Dict[str, Any]) -> Shipment:
        shipment = Shipment.objects.create(order_id=order_id, **data)
        logger.info(
            "shipment.created", order_id=str(order_id), shipment_id=str(shipment.id)
        )
        return shipment

    def get_shipment(self, order_id: UUID, shipment_id: str) -> Optional[Shipment]:
        try:
            return Shipment.objects.filter(id=shipment_id, order_id=order_id).first()
        except (ValueError, ValidationError):
            return None

    def update_shipment(self, shipment: Shipment, changes: Dict[str, Any]) -> Shipment:
        for field, value in changes.items():
            setattr(shipment, field, value)
        shipment.save(update_fields=list(changes))
        logger.info(
            "shipment.updated",
            shipment_id=str(shipment.id),
            fields=sorted(changes),
        )
        return shipment

    def list_shipments(self, order_id: UUID) -> List[Shipment]:
        return list(Shipment.objects.filter(order_id=order_id))
