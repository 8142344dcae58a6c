"""Event handlers for Orders domain events.

Handlers run after the originating transaction has committed.
"""

from __future__ import annotations

import structlog

from modules.notifications.dispatch import dispatch_order_status_email
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventBus, IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info("order.event.created", order_id=str(event.aggregate_id))


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info("order.event.cancelled", order_id=str(event.aggregate_id))


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    """Sends the customer a status e-mail (with QR once paid)."""

    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )
        dispatch_order_status_email(event.aggregate_id)


order_created_handler = OrderCreatedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()


def register_handlers(bus: IEventBus) -> None:
    bus.subscribe(OrderCreated, order_created_handler)
    bus.subscribe(OrderCancelled, order_cancelled_handler)
    bus.subscribe(OrderStatusChanged, order_status_changed_handler)
