"""Order QR codes.

The QR payload is the order's id as a plain UTF-8 string: no envelope,
no signature, no expiry.  Possession of the image (sent in the payment
confirmation e-mail) is the only proof required at pickup.

``is_qr_eligible`` is the single predicate every call site consults
(order API, notification e-mail, staff verification).
"""

from __future__ import annotations

import base64
from io import BytesIO
from typing import TYPE_CHECKING

import qrcode

from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import Order


def is_qr_eligible(order: Order) -> bool:
    return order.status == OrderStatus.PAID


def qr_payload(order: Order) -> str:
    return str(order.id)


def render_qr_png(payload: str) -> bytes:
    """Render ``payload`` as a PNG image."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload.encode("utf-8"))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def qr_data_url(payload: str) -> str:
    encoded = base64.b64encode(render_qr_png(payload)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
