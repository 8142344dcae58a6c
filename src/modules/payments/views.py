"""Payment confirmation endpoint."""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.api import DomainErrorMixin
from modules.orders.exceptions import OrderAccessDenied, OrderNotFound
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.orders.views import build_order_service
from modules.payments.dtos import ConfirmPaymentDTO
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.serializers import ConfirmPaymentSerializer
from modules.payments.services import PaymentReconciliationService

PARTIAL_FAILURE_WARNING = (
    "Payment succeeded; contact support if your order status doesn't update."
)


class PaymentViewSet(DomainErrorMixin, GenericViewSet):
    domain_errors = {
        OrderNotFound: status.HTTP_404_NOT_FOUND,
        OrderAccessDenied: status.HTTP_403_FORBIDDEN,
    }
    throttle_scope = "payment_confirmation"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PaymentReconciliationService(
            order_service=build_order_service(),
            order_repository=OrderDjangoRepository(),
            payment_repository=PaymentDjangoRepository(),
        )

    def create(self, request: Request) -> Response:
        """POST /api/v1/payments/

        201 when a new payment row was written, 200 otherwise (duplicate,
        or the insert failed after the gateway already captured).
        """
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._service.confirm_payment(
            ConfirmPaymentDTO(**serializer.validated_data), request.user
        )

        body = {
            "order": OrderSerializer(result.order).data,
            "payment_recorded": result.payment_recorded,
            "duplicate": result.duplicate,
            "anomaly": result.anomaly,
        }
        if result.error is not None:
            body["warning"] = PARTIAL_FAILURE_WARNING
            body["error"] = result.error.failures
        return Response(
            body,
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )
