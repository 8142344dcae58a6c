"""Fire-and-forget entry point used by domain event handlers."""

from __future__ import annotations

from typing import Any

import structlog

from modules.notifications.tasks import send_order_status_email

logger = structlog.get_logger(__name__)


def dispatch_order_status_email(order_id: Any) -> bool:
    """Queue the status e-mail.  Returns ``False`` if queuing failed.

    Broker outages and (in eager mode) task errors are logged here and
    never reach the caller.
    """
    try:
        send_order_status_email.delay(str(order_id))
    except Exception:
        logger.exception("notification.dispatch_failed", order_id=str(order_id))
        return False
    logger.info("notification.dispatched", order_id=str(order_id))
    return True
