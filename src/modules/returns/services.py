"""Return sub-ledger service.

Business rules enforced:
- Only the order's owner may open a return (staff included are refused).
- Only staff move a return: ``approve`` / ``reject`` from ``requested``,
  ``mark_received`` from ``approved``.
- The referenced order is never modified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog
from django.db import transaction

from modules.orders.constants import RequesterRole
from modules.orders.services import requester_role
from modules.returns.constants import ReturnStatus
from modules.returns.exceptions import (
    InvalidReturnTransition,
    ReturnAccessDenied,
    ReturnNotFound,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.services import OrderService
    from modules.returns.dtos import RequestReturnDTO
    from modules.returns.models import Return
    from modules.returns.repositories.interfaces import IReturnRepository

logger = structlog.get_logger(__name__)


class ReturnService:
    def __init__(
        self, return_repository: IReturnRepository, order_service: OrderService
    ) -> None:
        self._return_repo = return_repository
        self._order_service = order_service

    @transaction.atomic
    def request_return(
        self, order_id: Any, requester: Any, dto: RequestReturnDTO
    ) -> Return:
        """Open a return for one of the requester's own orders.

        Raises:
            OrderNotFound: no such order.
            ReturnAccessDenied: requester does not own the order.
        """
        order = self._order_service.get_order(order_id, requester)
        if order.owner_id != getattr(requester, "id", None):
            logger.warning(
                "return.request_forbidden",
                order_id=str(order.id),
                requester_id=str(getattr(requester, "id", "")),
            )
            raise ReturnAccessDenied("Only the order owner can request a return.")
        return self._return_repo.create(order.id, requester.id, dto.reason)

    def list_for_order(self, order_id: Any, requester: Any) -> List[Return]:
        order = self._order_service.get_order(order_id, requester)
        return self._return_repo.list_for_order(order.id)

    def list_all(self, requester: Any) -> QuerySet:
        self._ensure_staff(requester)
        return self._return_repo.all()

    def approve(self, return_id: Any, requester: Any, notes: str = "") -> Return:
        return self._transition(return_id, requester, ReturnStatus.APPROVED, notes)

    def reject(self, return_id: Any, requester: Any, notes: str = "") -> Return:
        return self._transition(return_id, requester, ReturnStatus.REJECTED, notes)

    def mark_received(self, return_id: Any, requester: Any, notes: str = "") -> Return:
        return self._transition(return_id, requester, ReturnStatus.RECEIVED, notes)

    @transaction.atomic
    def _transition(
        self, return_id: Any, requester: Any, new_status: str, notes: str
    ) -> Return:
        self._ensure_staff(requester)
        return_request = self._return_repo.get_for_update(str(return_id))
        if return_request is None:
            raise ReturnNotFound(f"Return {return_id} not found.")

        log = logger.bind(
            return_id=str(return_request.id),
            current_status=return_request.status,
            new_status=new_status,
        )
        if not return_request.can_transition_to(new_status):
            log.warning("return.invalid_transition")
            raise InvalidReturnTransition(
                f"Cannot move return from {return_request.status} to {new_status}."
            )

        return_request.status = new_status
        if notes:
            return_request.staff_notes = notes
        self._return_repo.save(return_request)
        log.info("return.status_changed")
        return return_request

    @staticmethod
    def _ensure_staff(requester: Any) -> None:
        if requester_role(requester) != RequesterRole.STAFF:
            raise ReturnAccessDenied("This operation is restricted to staff.")
