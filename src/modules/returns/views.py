"""Return API views.

``ReturnViewSet`` is the staff back-office (listing + transitions);
``OrderReturnViewSet`` serves ``/orders/{order_id}/returns/`` for the
order's owner.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.api import DomainErrorMixin
from modules.orders.exceptions import OrderAccessDenied, OrderNotFound
from modules.orders.views import build_order_service
from modules.returns.dtos import RequestReturnDTO
from modules.returns.exceptions import (
    InvalidReturnTransition,
    ReturnAccessDenied,
    ReturnNotFound,
)
from modules.returns.filters import ReturnFilter
from modules.returns.repositories.django_repository import ReturnDjangoRepository
from modules.returns.serializers import (
    RequestReturnSerializer,
    ReturnSerializer,
    ReturnTransitionSerializer,
)
from modules.returns.services import ReturnService

RETURN_DOMAIN_ERRORS = {
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    ReturnNotFound: status.HTTP_404_NOT_FOUND,
    OrderAccessDenied: status.HTTP_403_FORBIDDEN,
    ReturnAccessDenied: status.HTTP_403_FORBIDDEN,
    InvalidReturnTransition: status.HTTP_400_BAD_REQUEST,
}


def build_return_service() -> ReturnService:
    return ReturnService(
        return_repository=ReturnDjangoRepository(),
        order_service=build_order_service(),
    )


class ReturnViewSet(DomainErrorMixin, ListModelMixin, GenericViewSet):
    """Staff listing and state transitions of return requests."""

    domain_errors = RETURN_DOMAIN_ERRORS
    serializer_class = ReturnSerializer
    filterset_class = ReturnFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_return_service()

    def get_queryset(self):
        return self._service.list_all(self.request.user)

    def _transition(self, request: Request, pk: str, method_name: str) -> Response:
        serializer = ReturnTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        transition = getattr(self._service, method_name)
        return_request = transition(
            pk, request.user, notes=serializer.validated_data["notes"]
        )
        return Response(ReturnSerializer(return_request).data)

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/approve/"""
        return self._transition(request, pk, "approve")

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/reject/"""
        return self._transition(request, pk, "reject")

    @action(detail=True, methods=["post"])
    def receive(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/receive/"""
        return self._transition(request, pk, "mark_received")


class OrderReturnViewSet(DomainErrorMixin, GenericViewSet):
    """Returns of a single order: owner/staff read, owner create."""

    domain_errors = RETURN_DOMAIN_ERRORS

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_return_service()

    def list(self, request: Request, order_id: str) -> Response:
        """GET /api/v1/orders/{order_id}/returns/"""
        returns = self._service.list_for_order(order_id, request.user)
        return Response(ReturnSerializer(returns, many=True).data)

    def create(self, request: Request, order_id: str) -> Response:
        """POST /api/v1/orders/{order_id}/returns/"""
        serializer = RequestReturnSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return_request = self._service.request_return(
            order_id, request.user, RequestReturnDTO(**serializer.validated_data)
        )
        return Response(
            ReturnSerializer(return_request).data, status=status.HTTP_201_CREATED
        )
