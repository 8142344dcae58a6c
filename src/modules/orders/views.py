"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.
Domain exceptions are translated into HTTP status codes through
``domain_errors``; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.api import DomainErrorMixin
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    CreateShipmentDTO,
    OrderListQueryDTO,
    SetStatusDTO,
    UpdateShipmentDTO,
)
from modules.orders.exceptions import (
    InvalidOrderItem,
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderNotFound,
    OrderNumberConflict,
    QrNotAvailable,
    ShipmentNotFound,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    CreateShipmentSerializer,
    OrderListSerializer,
    OrderSerializer,
    SetStatusSerializer,
    ShipmentSerializer,
    UpdateShipmentSerializer,
    VerifyQrSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class OrderViewSet(DomainErrorMixin, GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer, which also decides ownership.
    """

    domain_errors = {
        OrderNotFound: status.HTTP_404_NOT_FOUND,
        ShipmentNotFound: status.HTTP_404_NOT_FOUND,
        OrderAccessDenied: status.HTTP_403_FORBIDDEN,
        InvalidOrderItem: status.HTTP_400_BAD_REQUEST,
        InvalidOrderStatus: status.HTTP_400_BAD_REQUEST,
        OrderNumberConflict: status.HTTP_409_CONFLICT,
        QrNotAvailable: status.HTTP_409_CONFLICT,
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(
                    product_id=item["product_id"],
                    variant_ref=item.get("variant_ref") or None,
                    quantity=item.get("quantity"),
                )
                for item in data["items"]
            ],
            shipping_address=data["shipping_address"],
            billing_address=data["billing_address"],
            payment_method=data["payment_method"],
            currency=data.get("currency"),
        )

        order = self._service.create_order(request.user, dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?page=&limit=&search=&status=&payment_status=

        Always answers with the ``{page, limit, total, orders}`` envelope.
        """
        params = request.query_params
        query = OrderListQueryDTO(
            page=params.get("page", 1),
            limit=params.get("limit"),
            max_limit=settings.ORDER_LIST_MAX_LIMIT,
            search=params.get("search"),
            status=params.get("status"),
            payment_status=params.get("payment_status"),
        )
        result = self._service.list_orders(request.user, query)
        return Response(
            {
                "page": result.page,
                "limit": result.limit,
                "total": result.total,
                "orders": OrderListSerializer(result.orders, many=True).data,
            }
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk, request.user)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel / status
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel_order(
            pk, request.user, notes=serializer.validated_data["notes"]
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/  (staff)"""
        order = self._service.set_status(
            request.user, self._status_dto(request), order_id=pk
        )
        return Response(OrderSerializer(order).data)

    @action(
        detail=False,
        methods=["put"],
        url_path=r"by-number/(?P<order_number>[^/]+)/status",
    )
    def set_status_by_number(self, request: Request, order_number: str) -> Response:
        """PUT /api/v1/orders/by-number/{order_number}/status/  (staff)

        Optional ``payment_status`` in the body is applied as well.
        """
        order = self._service.set_status(
            request.user, self._status_dto(request), order_number=order_number
        )
        return Response(OrderSerializer(order).data)

    def _status_dto(self, request: Request) -> SetStatusDTO:
        if not request.user.is_staff:
            raise OrderAccessDenied("Only staff can change order status.")
        serializer = SetStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return SetStatusDTO(**serializer.validated_data)

    # ------------------------------------------------------------------
    # QR
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def qr(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/qr/  (owner/staff, paid orders only)"""
        issued = self._service.issue_qr(pk, request.user)
        return Response(issued.model_dump())

    @action(detail=False, methods=["post"])
    def verify(self, request: Request) -> Response:
        """POST /api/v1/orders/verify/  (staff)

        Resolves a scanned payload (order id or order number).
        """
        serializer = VerifyQrSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._service.verify_qr(
            serializer.validated_data["payload"], request.user
        )
        return Response(
            {
                "qr_eligible": result.qr_eligible,
                "order": OrderSerializer(result.order).data,
            }
        )

    # ------------------------------------------------------------------
    # Shipments
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"])
    def shipments(self, request: Request, pk: str | None = None) -> Response:
        """GET/POST /api/v1/orders/{pk}/shipments/"""
        if request.method == "GET":
            shipments = self._service.list_shipments(pk, request.user)
            return Response(ShipmentSerializer(shipments, many=True).data)

        serializer = CreateShipmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = self._service.create_shipment(
            pk, request.user, CreateShipmentDTO(**serializer.validated_data)
        )
        return Response(
            ShipmentSerializer(shipment).data, status=status.HTTP_201_CREATED
        )

    @action(
        detail=True,
        methods=["patch"],
        url_path=r"shipments/(?P<shipment_id>[^/.]+)",
    )
    def update_shipment(
        self, request: Request, shipment_id: str, pk: str | None = None
    ) -> Response:
        """PATCH /api/v1/orders/{pk}/shipments/{shipment_id}/  (staff)"""
        serializer = UpdateShipmentSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        shipment = self._service.update_shipment(
            pk,
            shipment_id,
            request.user,
            UpdateShipmentDTO(**serializer.validated_data),
        )
        return Response(ShipmentSerializer(shipment).data)
