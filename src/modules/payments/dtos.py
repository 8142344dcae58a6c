"""Payment DTOs.

- ``ConfirmPaymentDTO``: what the client reports after a gateway success.
- ``ReconciliationResult``: outcome of ``confirm_payment``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.payments.exceptions import ReconciliationPartialFailure


class ConfirmPaymentDTO(BaseModel):
    """Gateway confirmation.  ``order_ref`` is an order id or order number.

    The signature is stored as received; it is not verified server-side.
    """

    model_config = ConfigDict(frozen=True)

    order_ref: str
    gateway_payment_id: str
    gateway_order_id: str = ""
    signature: str = ""
    amount: Optional[Decimal] = None

    @field_validator("order_ref", "gateway_payment_id")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value must not be blank.")
        return v


class ReconciliationResult(BaseModel):
    """``payment_recorded`` is true when a Payment row exists for the
    gateway id after the call (new or duplicate)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    order: Any
    payment_recorded: bool
    duplicate: bool = False
    anomaly: bool = False
    error: Optional[ReconciliationPartialFailure] = None

    @property
    def created(self) -> bool:
        return self.payment_recorded and not self.duplicate
