"""OrderService shipment bookkeeping and QR issuance/verification."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus, ShipmentStatus
from modules.orders.dtos import CreateShipmentDTO, UpdateShipmentDTO
from modules.orders.exceptions import (
    OrderAccessDenied,
    OrderNotFound,
    QrNotAvailable,
    ShipmentNotFound,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit


class TestShipments:
    def test_staff_creates_and_updates_shipment(
        self, order_service, paid_order, staff_user, customer
    ):
        shipment = order_service.create_shipment(
            paid_order.id,
            staff_user,
            CreateShipmentDTO(carrier="DHL", tracking_ref="JD0001"),
        )
        updated = order_service.update_shipment(
            paid_order.id,
            shipment.id,
            staff_user,
            UpdateShipmentDTO(status=ShipmentStatus.IN_TRANSIT),
        )

        assert updated.status == ShipmentStatus.IN_TRANSIT
        assert updated.carrier == "DHL"
        shipments = order_service.list_shipments(paid_order.id, customer)
        assert [s.id for s in shipments] == [shipment.id]

    def test_shipments_do_not_touch_order_status(
        self, order_service, paid_order, staff_user
    ):
        order_service.create_shipment(
            paid_order.id, staff_user, CreateShipmentDTO(carrier="UPS")
        )
        assert Order.objects.get(id=paid_order.id).status == OrderStatus.PAID

    def test_customer_cannot_create_shipment(self, order_service, paid_order, customer):
        with pytest.raises(OrderAccessDenied):
            order_service.create_shipment(
                paid_order.id, customer, CreateShipmentDTO(carrier="UPS")
            )

    def test_shipment_of_another_order_not_found(
        self, order_service, paid_order, make_order, customer, staff_user
    ):
        other = make_order(customer)
        shipment = order_service.create_shipment(
            other.id, staff_user, CreateShipmentDTO(carrier="UPS")
        )
        with pytest.raises(ShipmentNotFound):
            order_service.update_shipment(
                paid_order.id,
                shipment.id,
                staff_user,
                UpdateShipmentDTO(carrier="FedEx"),
            )

    def test_other_customer_cannot_list(
        self, order_service, paid_order, other_customer
    ):
        with pytest.raises(OrderAccessDenied):
            order_service.list_shipments(paid_order.id, other_customer)


class TestQr:
    def test_issue_for_paid_order(self, order_service, paid_order, customer):
        issued = order_service.issue_qr(paid_order.id, customer)

        assert issued.payload == str(paid_order.id)
        assert issued.image.startswith("data:image/png;base64,")

    def test_pending_order_has_no_qr(self, order_service, make_order, customer):
        order = make_order(customer)
        with pytest.raises(QrNotAvailable):
            order_service.issue_qr(order.id, customer)

    def test_staff_verifies_by_id_or_number(
        self, order_service, paid_order, staff_user
    ):
        by_id = order_service.verify_qr(str(paid_order.id), staff_user)
        by_number = order_service.verify_qr(f" {paid_order.order_number} ", staff_user)

        assert by_id.order.id == by_number.order.id == paid_order.id
        assert by_id.qr_eligible is True

    def test_verification_is_read_only_and_replayable(
        self, order_service, paid_order, staff_user
    ):
        before = Order.objects.get(id=paid_order.id).updated_at
        order_service.verify_qr(str(paid_order.id), staff_user)
        order_service.verify_qr(str(paid_order.id), staff_user)

        reloaded = Order.objects.get(id=paid_order.id)
        assert reloaded.status == OrderStatus.PAID
        assert reloaded.updated_at == before

    def test_verification_reports_ineligible_orders(
        self, order_service, make_order, customer, staff_user
    ):
        order = make_order(customer)
        assert order_service.verify_qr(str(order.id), staff_user).qr_eligible is False

    def test_customer_cannot_verify(self, order_service, paid_order, customer):
        with pytest.raises(OrderAccessDenied):
            order_service.verify_qr(str(paid_order.id), customer)

    def test_unknown_payload(self, order_service, staff_user):
        with pytest.raises(OrderNotFound):
            order_service.verify_qr(str(uuid4()), staff_user)
