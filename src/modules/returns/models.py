"""Return request model.

A ``Return`` references an order but never changes it.  Several returns
may exist for the same order.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.returns.constants import VALID_TRANSITIONS, ReturnStatus


class Return(BaseModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="returns",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="returns",
    )
    reason = models.TextField()
    status = models.CharField(
        max_length=20,
        choices=ReturnStatus.choices,
        default=ReturnStatus.REQUESTED,
    )
    staff_notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "returns"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="returns_status_idx"),
            models.Index(fields=["order", "-created_at"], name="returns_order_idx"),
        ]

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, frozenset())

    def __str__(self) -> str:
        return f"Return {self.id} for {self.order_id} ({self.status})"
