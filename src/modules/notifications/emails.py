"""Order status e-mail composition.

Paid orders carry their QR code as an inline PNG (``cid:`` reference),
so it renders in clients that block ``data:`` URLs.
"""

from __future__ import annotations

from email.mime.image import MIMEImage
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from modules.orders import qr

if TYPE_CHECKING:
    from modules.orders.models import Order

QR_CONTENT_ID = "order-qr"


def build_order_status_email(order: Order) -> EmailMultiAlternatives:
    owner = order.owner
    qr_eligible = qr.is_qr_eligible(order)
    context = {
        "order": order,
        "customer_name": owner.get_full_name() or owner.get_username(),
        "qr_eligible": qr_eligible,
        "qr_cid": QR_CONTENT_ID,
    }

    message = EmailMultiAlternatives(
        subject=f"Order Status Updated - #{order.order_number}",
        body=render_to_string("notifications/order_status.txt", context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[owner.email],
    )
    message.attach_alternative(
        render_to_string("notifications/order_status.html", context), "text/html"
    )

    if qr_eligible:
        image = MIMEImage(qr.render_qr_png(qr.qr_payload(order)), _subtype="png")
        image.add_header("Content-ID", f"<{QR_CONTENT_ID}>")
        image.add_header(
            "Content-Disposition", "inline", filename=f"{order.order_number}.png"
        )
        message.mixed_subtype = "related"
        message.attach(image)

    return message
