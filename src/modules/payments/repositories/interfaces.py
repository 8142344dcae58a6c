"""Payment repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import Payment


class IPaymentRepository(IRepository["Payment"]):
    @abstractmethod
    def exists_by_gateway_id(self, gateway_payment_id: str) -> bool:
        """Whether a payment with this gateway id was already recorded."""

    @abstractmethod
    def has_other_payment(self, order_id: UUID, gateway_payment_id: str) -> bool:
        """Whether the order has a payment with a *different* gateway id."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Payment:
        """Insert a payment inside its own savepoint.

        Raises ``IntegrityError`` when the gateway id is already taken;
        the enclosing transaction stays usable.
        """

    @abstractmethod
    def list_for_order(self, order_id: UUID) -> List[Payment]:
        """Payments of an order, oldest first."""
