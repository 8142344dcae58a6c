"""Order domain constants.

Status choices for the fulfilment state machine and the independently
tracked payment status, plus the default cancellation policy.

Staff may force any known status; only cancellation is policy-checked.
``DEFAULT_CANCEL_POLICY`` can be overridden per role with the
``ORDER_CUSTOMER_CANCELLABLE_STATUSES`` / ``ORDER_STAFF_CANCELLABLE_STATUSES``
settings.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class ShipmentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_TRANSIT = "in_transit", "In transit"
    DELIVERED = "delivered", "Delivered"
    RETURNED = "returned", "Returned"


class RequesterRole(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    STAFF = "staff", "Staff"


DEFAULT_CANCEL_POLICY: dict[str, set[str]] = {
    RequesterRole.CUSTOMER: {OrderStatus.PENDING},
    RequesterRole.STAFF: {OrderStatus.PENDING, OrderStatus.PAID},
}

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_SUFFIX_LENGTH = 4

DEFAULT_PAGE_SIZE = 20

# Upper bound on a single cart line; larger values are rejected with a 400.
MAX_ITEM_QUANTITY = 10_000
