"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.

Authorization failures (``OrderNotFound`` / ``OrderAccessDenied``) are
always raised before any write takes place.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist (by id or order number)."""


class OrderAccessDenied(Exception):
    """The requester is neither the order's owner nor staff, or the
    operation is staff-only."""


class InvalidOrderItem(Exception):
    """The cart is empty or references a product the catalog cannot resolve."""


class InvalidOrderStatus(Exception):
    """Unknown status value, or a transition the cancel policy forbids."""


class OrderNumberConflict(Exception):
    """The generated order number collided with an existing one."""


class ShipmentNotFound(Exception):
    """The shipment does not exist or belongs to another order."""


class QrNotAvailable(Exception):
    """The order is not in a state where its QR code may be shown."""
