"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: checkout input.
- ``OrderListQueryDTO`` / ``OrderPageDTO``: listing input and envelope.
- ``SetStatusDTO``: staff status override.
- ``CreateShipmentDTO`` / ``UpdateShipmentDTO``: shipment bookkeeping.
- ``OrderQrDTO`` / ``QrVerificationDTO``: QR issuance and staff scans.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_ITEM_QUANTITY,
    ShipmentStatus,
)

MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A single cart line as sent by the client.

    ``unit_price``, name and image are resolved by the Service Layer from
    the catalog.  A missing or non-positive quantity means 1; quantities
    above ``MAX_ITEM_QUANTITY`` are rejected.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    variant_ref: Optional[str] = None
    quantity: int = Field(default=1, le=MAX_ITEM_QUANTITY)

    @field_validator("quantity", mode="before")
    @classmethod
    def default_non_positive_quantity(cls, v: Any) -> Any:
        if v is None:
            return 1
        if isinstance(v, int) and v < 1:
            return 1
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests."""

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    payment_method: Any
    currency: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("currency")
    @classmethod
    def normalise_currency(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("Currency must be a 3-letter ISO code.")
        return v


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class OrderListQueryDTO(BaseModel):
    """Offset pagination + search.  Out-of-range values are clamped."""

    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    max_limit: int = MAX_PAGE_SIZE
    search: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, v: Any) -> int:
        try:
            return max(1, int(v))
        except (TypeError, ValueError):
            return 1

    @model_validator(mode="before")
    @classmethod
    def clamp_limit(cls, data: Any) -> Any:
        """Clamp ``limit`` to ``[1, max_limit]``; garbage means the default."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        ceiling = data.get("max_limit") or MAX_PAGE_SIZE
        try:
            limit = int(data.get("limit", DEFAULT_PAGE_SIZE))
        except (TypeError, ValueError):
            limit = DEFAULT_PAGE_SIZE
        data["limit"] = min(ceiling, max(1, limit))
        return data

    @field_validator("search", "status", "payment_status")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class OrderPageDTO(BaseModel):
    """``{page, limit, total, orders}`` envelope.

    ``total`` is the full filtered count, not the size of ``orders``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    page: int
    limit: int
    total: int
    orders: List[Any]


# ---------------------------------------------------------------------------
# Status / shipments
# ---------------------------------------------------------------------------


class SetStatusDTO(BaseModel):
    """Staff override.  Values are checked by the service, not here, so
    unknown statuses surface as ``InvalidOrderStatus``."""

    model_config = ConfigDict(frozen=True)

    status: str
    payment_status: Optional[str] = None
    notes: str = ""


class CreateShipmentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    carrier: str
    tracking_ref: str = ""
    status: ShipmentStatus = ShipmentStatus.PENDING


class UpdateShipmentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    carrier: Optional[str] = None
    tracking_ref: Optional[str] = None
    status: Optional[ShipmentStatus] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# QR codes
# ---------------------------------------------------------------------------


class OrderQrDTO(BaseModel):
    """QR payload plus its PNG rendering as a data URL."""

    model_config = ConfigDict(frozen=True)

    payload: str
    image: str


class QrVerificationDTO(BaseModel):
    """Result of a staff scan: the order and whether its QR is valid now."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    order: Any
    qr_eligible: bool
