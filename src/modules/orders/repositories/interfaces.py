"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with line items, the dual id / order-number lookup,
row locking for status changes, a single-statement "mark paid" write for
reconciliation, status history, and shipment bookkeeping.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderStatusHistory, Shipment


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        Raises ``OrderNumberConflict`` when the order number is taken.
        """

    @abstractmethod
    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its human-readable number."""

    @abstractmethod
    def get_for_update(
        self, id: Optional[str] = None, order_number: Optional[str] = None
    ) -> Optional[Order]:
        """Retrieve an order (by id or number) holding a row-level lock."""

    @abstractmethod
    def search(
        self,
        owner_id: Optional[Any] = None,
        term: Optional[str] = None,
        match_owner_email: bool = False,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> QuerySet:
        """Filtered orders, newest first."""

    @abstractmethod
    def save_fields(self, entity: Order, fields: List[str]) -> Order:
        """Persist only ``fields`` of an existing order."""

    @abstractmethod
    def mark_paid(self, order_id: UUID) -> bool:
        """Set ``payment_status`` to ``paid``; move ``status`` only from ``pending``.

        Returns ``True`` when this call moved the status to ``paid``.
        """

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Optional[Any] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    # ------------------------------------------------------------------
    # Shipments
    # ------------------------------------------------------------------

    @abstractmethod
    def create_shipment(self, order_id: UUID, data: Dict[str, Any]) -> Shipment:
        """Attach a new shipment to an order."""

    @abstractmethod
    def get_shipment(self, order_id: UUID, shipment_id: str) -> Optional[Shipment]:
        """Retrieve a shipment, only if it belongs to ``order_id``."""

    @abstractmethod
    def update_shipment(self, shipment: Shipment, changes: Dict[str, Any]) -> Shipment:
        """Apply ``changes`` to a shipment."""

    @abstractmethod
    def list_shipments(self, order_id: UUID) -> List[Shipment]:
        """Shipments of an order, oldest first."""
