"""Django ORM implementation of the Payment repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.payments.models import Payment
from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentDjangoRepository(IPaymentRepository):
    def get_by_id(self, id: str) -> Optional[Payment]:
        try:
            return Payment.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Payment) -> Payment:
        # Frozen fields make any update after insert fail in SnapshotModel.save.
        entity.save()
        return entity

    def exists_by_gateway_id(self, gateway_payment_id: str) -> bool:
        return Payment.objects.filter(gateway_payment_id=gateway_payment_id).exists()

    def has_other_payment(self, order_id: UUID, gateway_payment_id: str) -> bool:
        return (
            Payment.objects.filter(order_id=order_id)
            .exclude(gateway_payment_id=gateway_payment_id)
            .exists()
        )

    def create(self, data: Dict[str, Any]) -> Payment:
        with transaction.atomic():
            payment = Payment.objects.create(**data)
        logger.info(
            "payment.recorded",
            payment_id=str(payment.id),
            order_id=str(payment.order_id),
            gateway_payment_id=payment.gateway_payment_id,
            is_anomaly=payment.is_anomaly,
        )
        return payment

    def list_for_order(self, order_id: UUID) -> List[Payment]:
        return list(Payment.objects.filter(order_id=order_id).order_by("created_at"))
