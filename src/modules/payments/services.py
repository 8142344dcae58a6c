"""Payment reconciliation service.

Runs inside the HTTP request that reports a gateway success.  The money
has already moved by then, so once the order is resolved and the
requester authorized, nothing here fails the call: a failure in either
write step is logged and collected into a ``ReconciliationPartialFailure``
on the result.  There is no transaction around the whole call, so one
step failing never rolls back the other.

Write order:
1. ``payment_status = paid`` always; ``status`` moves to ``paid`` only
   from ``pending``.  Orders already shipped, delivered or cancelled keep
   their status; only staff move those;
2. duplicate check on ``gateway_payment_id``, anomaly check and payment
   insert in one savepoint; a unique-index race is a no-op.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, NamedTuple, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.events import OrderStatusChanged
from modules.payments.dtos import ReconciliationResult
from modules.payments.exceptions import ReconciliationPartialFailure
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from modules.payments.dtos import ConfirmPaymentDTO
    from modules.payments.repositories.interfaces import IPaymentRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class _Recorded(NamedTuple):
    payment_recorded: bool
    duplicate: bool = False
    anomaly: bool = False


class PaymentReconciliationService:
    def __init__(
        self,
        order_service: OrderService,
        order_repository: IOrderRepository,
        payment_repository: IPaymentRepository,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_service = order_service
        self._order_repo = order_repository
        self._payment_repo = payment_repository
        self._event_bus = event_bus or default_event_bus

    def confirm_payment(
        self, dto: ConfirmPaymentDTO, requester: Any
    ) -> ReconciliationResult:
        """Record a gateway success against an order.

        Raises:
            OrderNotFound: ``order_ref`` matches no order id or number.
            OrderAccessDenied: requester is neither owner nor staff.
        """
        order = self._order_service.get_order_by_reference(dto.order_ref, requester)
        log = logger.bind(
            order_id=str(order.id),
            order_number=order.order_number,
            gateway_payment_id=dto.gateway_payment_id,
        )
        log.info("payment.confirmation_received", current_status=order.status)

        if dto.amount is not None and dto.amount != order.total_amount:
            log.warning(
                "payment.amount_mismatch",
                reported_amount=str(dto.amount),
                total_amount=str(order.total_amount),
            )

        failures: List[str] = []
        moved = self._mark_paid(order, requester, failures, log)
        recorded = self._record_payment(order, dto, failures, log)

        if moved:
            event = OrderStatusChanged(
                aggregate_id=order.id,
                old_status=OrderStatus.PENDING,
                new_status=OrderStatus.PAID,
            )
            transaction.on_commit(lambda: self._event_bus.publish(event))

        error = ReconciliationPartialFailure(failures) if failures else None
        log.info(
            "payment.reconciled",
            status_moved=moved,
            payment_recorded=recorded.payment_recorded,
            duplicate=recorded.duplicate,
            anomaly=recorded.anomaly,
            partial_failure=bool(failures),
        )
        return ReconciliationResult(
            order=self._reload(order, moved, log),
            payment_recorded=recorded.payment_recorded,
            duplicate=recorded.duplicate,
            anomaly=recorded.anomaly,
            error=error,
        )

    def _mark_paid(
        self, order: Order, requester: Any, failures: List[str], log: Any
    ) -> bool:
        """Returns ``True`` when this call moved the order from pending to paid."""
        try:
            with transaction.atomic():
                moved = self._order_repo.mark_paid(order.id)
                if moved:
                    self._order_repo.add_history(
                        order_id=order.id,
                        status=OrderStatus.PAID,
                        notes="Payment confirmed",
                        old_status=OrderStatus.PENDING,
                        user=requester,
                    )
        except Exception as exc:
            log.exception("payment.status_update_failed")
            failures.append(f"order status: {exc}")
            return False
        if not moved and order.status != OrderStatus.PAID:
            log.info("payment.status_kept", current_status=order.status)
        return moved

    def _record_payment(
        self, order: Order, dto: ConfirmPaymentDTO, failures: List[str], log: Any
    ) -> _Recorded:
        anomaly = False
        try:
            with transaction.atomic():
                if self._payment_repo.exists_by_gateway_id(dto.gateway_payment_id):
                    log.info("payment.duplicate")
                    return _Recorded(payment_recorded=True, duplicate=True)

                anomaly = self._payment_repo.has_other_payment(
                    order.id, dto.gateway_payment_id
                )
                if anomaly:
                    log.error("payment.anomaly_detected")
                self._payment_repo.create(
                    {
                        "order_id": order.id,
                        "gateway_payment_id": dto.gateway_payment_id,
                        "gateway_order_id": dto.gateway_order_id,
                        "signature": dto.signature,
                        "amount": (
                            dto.amount if dto.amount is not None else order.total_amount
                        ),
                        "currency": order.currency,
                        "is_anomaly": anomaly,
                    }
                )
        except IntegrityError:
            log.info("payment.duplicate", race=True)
            return _Recorded(payment_recorded=True, duplicate=True)
        except Exception as exc:
            log.exception("payment.record_failed")
            failures.append(f"payment record: {exc}")
            return _Recorded(payment_recorded=False, anomaly=anomaly)
        return _Recorded(payment_recorded=True, anomaly=anomaly)

    def _reload(self, order: Order, moved: bool, log: Any) -> Order:
        try:
            fresh = self._order_repo.get_by_id(str(order.id))
        except Exception:
            log.exception("payment.reload_failed")
            fresh = None
        if fresh is not None:
            return fresh
        if moved:
            order.status = OrderStatus.PAID
            order.payment_status = PaymentStatus.PAID
        return order
