"""Notification Celery tasks.

Delivery is best-effort: no retries, and transport failures are logged
and reported in the task result instead of raised.
"""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.notifications.emails import build_order_status_email
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


@shared_task(name="notifications.send_order_status_email")
def send_order_status_email(order_id: str) -> dict:
    """Send the status-update e-mail for ``order_id`` to its owner."""
    log = logger.bind(order_id=order_id)

    order = Order.objects.select_related("owner").filter(id=order_id).first()
    if order is None:
        log.warning("notification.skipped", reason="order_not_found")
        return {"status": "skipped", "reason": "order_not_found"}
    if not order.owner.email:
        log.info("notification.skipped", reason="no_recipient")
        return {"status": "skipped", "reason": "no_recipient"}

    message = build_order_status_email(order)
    try:
        message.send(fail_silently=False)
    except Exception:
        log.exception("notification.send_failed", order_status=order.status)
        return {"status": "failed"}

    log.info("notification.sent", order_status=order.status)
    return {"status": "sent"}
