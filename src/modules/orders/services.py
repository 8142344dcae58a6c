"""Order service layer (Use Cases).

Orchestrates order creation, lookup/listing, cancellation, staff status
overrides, shipments and QR issuance/verification.

Business rules enforced:
- Cart must be non-empty and every product must resolve in the catalog.
- Line items snapshot the catalog price/name/image at creation time;
  tax and shipping are fixed at zero, so ``total == subtotal``.
- Owner-or-staff access to an order; authorization is decided before any
  write.
- Cancellation is checked against a per-role policy table;
  ``cancelled -> cancelled`` is a no-op.
- Staff may force any *known* status; unknown values are rejected.
- Status changes append history and publish ``OrderStatusChanged`` only
  after the transaction commits.  Whatever the subscribers do
  (e-mail) can never roll back or fail the change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Set
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction

from modules.orders import qr
from modules.orders.constants import (
    DEFAULT_CANCEL_POLICY,
    OrderStatus,
    PaymentStatus,
    RequesterRole,
)
from modules.orders.dtos import OrderPageDTO, OrderQrDTO, QrVerificationDTO
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderItem,
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderNotFound,
    QrNotAvailable,
    ShipmentNotFound,
)
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.orders.dtos import (
        CreateOrderDTO,
        CreateShipmentDTO,
        OrderListQueryDTO,
        SetStatusDTO,
        UpdateShipmentDTO,
    )
    from modules.orders.models import Order, Shipment
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


def requester_role(requester: Any) -> str:
    return (
        RequesterRole.STAFF
        if getattr(requester, "is_staff", False)
        else RequesterRole.CUSTOMER
    )


def configured_cancel_policy() -> Dict[str, Set[str]]:
    """Cancel policy from settings, falling back to the built-in default."""
    policy = {role: set(statuses) for role, statuses in DEFAULT_CANCEL_POLICY.items()}
    overrides: Mapping[str, Any] = getattr(settings, "ORDER_CANCEL_POLICY", None) or {}
    for role, statuses in overrides.items():
        policy[role] = set(statuses)
    return policy


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the event bus via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        event_bus: Optional[IEventBus] = None,
        cancel_policy: Optional[Mapping[str, Set[str]]] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._event_bus = event_bus or default_event_bus
        self._cancel_policy = (
            {role: set(statuses) for role, statuses in cancel_policy.items()}
            if cancel_policy is not None
            else configured_cancel_policy()
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, requester: Any, dto: CreateOrderDTO) -> Order:
        """Create a ``pending`` order from a cart.

        Raises:
            InvalidOrderItem: empty cart or a product the catalog can't resolve.
            OrderNumberConflict: generated order number already taken.
        """
        log = logger.bind(owner_id=str(requester.id))
        log.info("order.creation_started", item_count=len(dto.items))

        if not dto.items:
            raise InvalidOrderItem("Order must have at least one item.")

        repo_items: List[Dict[str, Any]] = []
        for item_dto in dto.items:
            snapshot = self._product_repo.get_snapshot(str(item_dto.product_id))
            if snapshot is None:
                log.warning("order.invalid_item", product_id=str(item_dto.product_id))
                raise InvalidOrderItem(f"Product {item_dto.product_id} not found.")
            repo_items.append(
                {
                    "product_id": snapshot.id,
                    "variant_ref": item_dto.variant_ref,
                    "product_name": snapshot.name,
                    "image_url": snapshot.image_url,
                    "quantity": item_dto.quantity,
                    "unit_price": snapshot.price,
                }
            )

        order = self._order_repo.create(
            {
                "owner_id": requester.id,
                "items": repo_items,
                "currency": dto.currency or settings.DEFAULT_ORDER_CURRENCY,
                "shipping_address": dto.shipping_address,
                "billing_address": dto.billing_address,
                "payment_method": dto.payment_method,
            }
        )
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order created",
            user=requester,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        self._publish_after_commit(OrderCreated(aggregate_id=order.id))

        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def cancel_order(self, order_id: Any, requester: Any, notes: str = "") -> Order:
        """Cancel an order on behalf of its owner or staff.

        Cancelling an already-cancelled order returns it unchanged.

        Raises:
            OrderNotFound / OrderAccessDenied: per ``get_order`` rules.
            InvalidOrderStatus: the cancel policy forbids it for this role.
        """
        order = self._order_repo.get_for_update(id=str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        self._ensure_visible(order, requester)

        role = requester_role(requester)
        log = logger.bind(
            order_id=str(order.id), current_status=order.status, role=role
        )

        if order.status == OrderStatus.CANCELLED:
            log.info("order.cancel_noop")
            return self._order_repo.get_by_id(str(order.id)) or order

        if order.status not in self._cancel_policy.get(role, set()):
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        self._order_repo.save_fields(order, ["status"])
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            user=requester,
        )

        log.info("order.cancelled")
        self._publish_after_commit(OrderCancelled(aggregate_id=order.id))
        self._publish_after_commit(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=OrderStatus.CANCELLED,
            )
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def set_status(
        self,
        requester: Any,
        dto: SetStatusDTO,
        order_id: Optional[Any] = None,
        order_number: Optional[str] = None,
    ) -> Order:
        """Staff override of ``status`` (and optionally ``payment_status``).

        No forward-only table is enforced; the values must merely be known.
        Looks the order up by ``order_id`` or ``order_number``.

        Raises:
            OrderAccessDenied: requester is not staff.
            InvalidOrderStatus: unknown status / payment status value.
            OrderNotFound: no such order.
        """
        if requester_role(requester) != RequesterRole.STAFF:
            logger.warning(
                "order.status_change_forbidden",
                requester_id=str(getattr(requester, "id", "")),
            )
            raise OrderAccessDenied("Only staff can change order status.")

        if dto.status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown order status '{dto.status}'.")
        if dto.payment_status is not None and (
            dto.payment_status not in PaymentStatus.values
        ):
            raise InvalidOrderStatus(
                f"Unknown payment status '{dto.payment_status}'."
            )

        if order_id is not None:
            order = self._order_repo.get_for_update(id=str(order_id))
        else:
            order = self._order_repo.get_for_update(order_number=order_number)
        if not order:
            raise OrderNotFound(f"Order {order_id or order_number} not found.")

        old_status = order.status
        log = logger.bind(
            order_id=str(order.id),
            current_status=old_status,
            new_status=dto.status,
        )

        fields = ["status"]
        order.status = dto.status
        if dto.payment_status is not None:
            order.payment_status = dto.payment_status
            fields.append("payment_status")
        self._order_repo.save_fields(order, fields)

        if old_status != dto.status:
            self._order_repo.add_history(
                order_id=order.id,
                status=dto.status,
                notes=dto.notes,
                old_status=old_status,
                user=requester,
            )
            self._publish_after_commit(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=dto.status,
                )
            )

        log.info("order.status_updated", payment_status=order.payment_status)
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, requester: Any) -> Order:
        """Retrieve a single order visible to ``requester``.

        Raises:
            OrderNotFound: unknown or malformed id.
            OrderAccessDenied: requester is neither owner nor staff.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        self._ensure_visible(order, requester)
        return order

    def get_order_by_number(self, order_number: str, requester: Any) -> Order:
        order = self._order_repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found.")
        self._ensure_visible(order, requester)
        return order

    def get_order_by_reference(self, reference: str, requester: Any) -> Order:
        """Look an order up by id when ``reference`` is a UUID, else by number."""
        try:
            order_id = UUID(str(reference))
        except ValueError:
            return self.get_order_by_number(str(reference), requester)
        return self.get_order(order_id, requester)

    def list_orders(self, requester: Any, query: OrderListQueryDTO) -> OrderPageDTO:
        """Newest-first page of the orders ``requester`` may see."""
        is_staff = requester_role(requester) == RequesterRole.STAFF
        queryset = self._order_repo.search(
            owner_id=None if is_staff else requester.id,
            term=query.search,
            match_owner_email=is_staff,
            status=query.status,
            payment_status=query.payment_status,
        )
        total = queryset.count()
        orders = list(queryset[query.offset : query.offset + query.limit])
        return OrderPageDTO(
            page=query.page, limit=query.limit, total=total, orders=orders
        )

    # ------------------------------------------------------------------
    # QR issuance / verification
    # ------------------------------------------------------------------

    def issue_qr(self, order_id: Any, requester: Any) -> OrderQrDTO:
        """QR code for an order, only once it is paid.

        Raises:
            QrNotAvailable: the order is not QR-eligible yet (or anymore).
        """
        order = self.get_order(order_id, requester)
        if not qr.is_qr_eligible(order):
            raise QrNotAvailable(f"Order {order.order_number} is {order.status}.")
        payload = qr.qr_payload(order)
        return OrderQrDTO(payload=payload, image=qr.qr_data_url(payload))

    def verify_qr(self, payload: str, requester: Any) -> QrVerificationDTO:
        """Resolve a scanned payload (staff only).  Never mutates the order."""
        if requester_role(requester) != RequesterRole.STAFF:
            raise OrderAccessDenied("Only staff can verify order QR codes.")
        order = self.get_order_by_reference(payload.strip(), requester)
        eligible = qr.is_qr_eligible(order)
        logger.info(
            "order.qr_verified",
            order_id=str(order.id),
            status=order.status,
            qr_eligible=eligible,
        )
        return QrVerificationDTO(order=order, qr_eligible=eligible)

    # ------------------------------------------------------------------
    # Shipments
    # ------------------------------------------------------------------

    def create_shipment(
        self, order_id: Any, requester: Any, dto: CreateShipmentDTO
    ) -> Shipment:
        self._ensure_staff(requester)
        order = self.get_order(order_id, requester)
        return self._order_repo.create_shipment(order.id, dto.model_dump())

    def update_shipment(
        self, order_id: Any, shipment_id: Any, requester: Any, dto: UpdateShipmentDTO
    ) -> Shipment:
        self._ensure_staff(requester)
        order = self.get_order(order_id, requester)
        shipment = self._order_repo.get_shipment(order.id, str(shipment_id))
        if not shipment:
            raise ShipmentNotFound(f"Shipment {shipment_id} not found.")
        return self._order_repo.update_shipment(shipment, dto.changes())

    def list_shipments(self, order_id: Any, requester: Any) -> List[Shipment]:
        order = self.get_order(order_id, requester)
        return self._order_repo.list_shipments(order.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_visible(order: Order, requester: Any) -> None:
        if not order.is_visible_to(requester):
            logger.warning(
                "order.access_denied",
                order_id=str(order.id),
                requester_id=str(getattr(requester, "id", "")),
            )
            raise OrderAccessDenied("You do not have access to this order.")

    @staticmethod
    def _ensure_staff(requester: Any) -> None:
        if requester_role(requester) != RequesterRole.STAFF:
            raise OrderAccessDenied("This operation is restricted to staff.")

    def _publish_after_commit(self, event: DomainEvent) -> None:
        transaction.on_commit(lambda: self._event_bus.publish(event))
