"""Integration tests for QR issuance, staff verification and shipments."""

from __future__ import annotations

import base64

import pytest

from modules.orders.models import Order

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestOrderQr:
    def test_paid_order_gets_qr(self, client_for, customer, paid_order):
        response = client_for(customer).get(f"{URL}{paid_order.id}/qr/")

        assert response.status_code == 200
        data = response.json()
        assert data["payload"] == str(paid_order.id)
        prefix = "data:image/png;base64,"
        assert data["image"].startswith(prefix)
        assert base64.b64decode(data["image"][len(prefix) :]).startswith(PNG_SIGNATURE)

    def test_pending_order_returns_409(self, client_for, customer, make_order):
        order = make_order(customer)
        response = client_for(customer).get(f"{URL}{order.id}/qr/")
        assert response.status_code == 409

    def test_other_customer_gets_403(self, client_for, other_customer, paid_order):
        response = client_for(other_customer).get(f"{URL}{paid_order.id}/qr/")
        assert response.status_code == 403


class TestVerifyQr:
    def test_staff_scans_paid_order(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).post(
            f"{URL}verify/", {"payload": str(paid_order.id)}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["qr_eligible"] is True
        assert data["order"]["id"] == str(paid_order.id)
        assert Order.objects.get(id=paid_order.id).status == "paid"

    def test_scan_by_order_number(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).post(
            f"{URL}verify/", {"payload": paid_order.order_number}, format="json"
        )
        assert response.json()["order"]["id"] == str(paid_order.id)

    def test_cancelled_order_is_not_eligible(
        self, client_for, staff_user, customer, make_order
    ):
        order = make_order(customer)
        client = client_for(staff_user)
        client.patch(f"{URL}{order.id}/cancel/")

        response = client.post(
            f"{URL}verify/", {"payload": str(order.id)}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["qr_eligible"] is False

    def test_customer_gets_403(self, client_for, customer, paid_order):
        response = client_for(customer).post(
            f"{URL}verify/", {"payload": str(paid_order.id)}, format="json"
        )
        assert response.status_code == 403

    def test_unknown_payload_returns_404(self, client_for, staff_user):
        response = client_for(staff_user).post(
            f"{URL}verify/", {"payload": "ORD-0-UNKNOWN"}, format="json"
        )
        assert response.status_code == 404


class TestShipments:
    def test_staff_ships_and_tracks(self, client_for, staff_user, customer, paid_order):
        staff = client_for(staff_user)

        created = staff.post(
            f"{URL}{paid_order.id}/shipments/",
            {"carrier": "DHL", "tracking_ref": "JD014600003"},
            format="json",
        )
        assert created.status_code == 201
        shipment_id = created.json()["id"]
        assert created.json()["status"] == "pending"

        updated = staff.patch(
            f"{URL}{paid_order.id}/shipments/{shipment_id}/",
            {"status": "delivered"},
            format="json",
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "delivered"
        assert updated.json()["tracking_ref"] == "JD014600003"

        listing = client_for(customer).get(f"{URL}{paid_order.id}/shipments/")
        assert [s["id"] for s in listing.json()] == [shipment_id]
        assert Order.objects.get(id=paid_order.id).status == "paid"

    def test_customer_cannot_create_shipment(self, client_for, customer, paid_order):
        response = client_for(customer).post(
            f"{URL}{paid_order.id}/shipments/", {"carrier": "DHL"}, format="json"
        )
        assert response.status_code == 403

    def test_invalid_shipment_status_returns_400(
        self, client_for, staff_user, paid_order
    ):
        response = client_for(staff_user).post(
            f"{URL}{paid_order.id}/shipments/",
            {"carrier": "DHL", "status": "lost-in-space"},
            format="json",
        )
        assert response.status_code == 400

    def test_unknown_shipment_returns_404(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).patch(
            f"{URL}{paid_order.id}/shipments/00000000-0000-0000-0000-000000000000/",
            {"status": "delivered"},
            format="json",
        )
        assert response.status_code == 404
