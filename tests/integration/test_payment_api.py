"""Integration tests for POST /api/v1/payments/.

Covers:
- 201 on first confirmation, 200 on replay with the same gateway id.
- Order resolved by id or order number.
- Partial failure: 200 with a ``warning`` and the ``error`` list, order
  still paid.
- A replay after staff shipped the order leaves it shipped.
- 400 / 401 / 403 / 404.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core import mail
from django.db import DatabaseError

from modules.orders.dtos import SetStatusDTO
from modules.orders.models import Order
from modules.payments.models import Payment
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.views import PARTIAL_FAILURE_WARNING

pytestmark = pytest.mark.integration

URL = "/api/v1/payments/"


def _body(order_ref, gateway_payment_id="pay_Nx01", **extra):
    return {
        "order_ref": str(order_ref),
        "gateway_payment_id": gateway_payment_id,
        "gateway_order_id": "order_Nx01",
        "signature": "5f1b0e2d",
        **extra,
    }


@pytest.fixture()
def order(make_order, product_factory, customer):
    return make_order(
        customer,
        [(product_factory(price="100.00"), 2), (product_factory(price="50.00"), 1)],
    )


class TestConfirmPayment:
    def test_first_confirmation_returns_201(self, client_for, customer, order):
        response = client_for(customer).post(
            URL, _body(order.id, amount="250.00"), format="json"
        )

        assert response.status_code == 201
        data = response.json()
        assert data["payment_recorded"] is True
        assert data["duplicate"] is False
        assert data["anomaly"] is False
        assert "warning" not in data
        assert "error" not in data
        assert data["order"]["status"] == "paid"
        assert data["order"]["payment_status"] == "paid"
        assert data["order"]["qr_eligible"] is True

    def test_replay_returns_200_and_writes_once(self, client_for, customer, order):
        client = client_for(customer)
        client.post(URL, _body(order.id), format="json")

        response = client.post(URL, _body(order.id), format="json")

        assert response.status_code == 200
        assert response.json()["duplicate"] is True
        assert Payment.objects.filter(gateway_payment_id="pay_Nx01").count() == 1

    def test_order_number_reference(self, client_for, customer, order):
        response = client_for(customer).post(
            URL, _body(order.order_number), format="json"
        )
        assert response.status_code == 201
        assert response.json()["order"]["id"] == str(order.id)

    def test_customer_is_emailed_after_commit(
        self, client_for, customer, order, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            client_for(customer).post(URL, _body(order.id), format="json")

        assert len(mail.outbox) == 1
        assert mail.outbox[0].attachments

    def test_replay_after_shipping_keeps_status_and_sends_no_email(
        self,
        client_for,
        customer,
        staff_user,
        order,
        order_service,
        django_capture_on_commit_callbacks,
    ):
        client = client_for(customer)
        client.post(URL, _body(order.id), format="json")
        order_service.set_status(
            staff_user, SetStatusDTO(status="shipped"), order_id=order.id
        )
        mail.outbox.clear()

        with django_capture_on_commit_callbacks(execute=True):
            response = client.post(URL, _body(order.id), format="json")

        assert response.status_code == 200
        data = response.json()
        assert data["duplicate"] is True
        assert data["order"]["status"] == "shipped"
        assert data["order"]["payment_status"] == "paid"
        assert Order.objects.get(id=order.id).status == "shipped"
        assert mail.outbox == []

    def test_insert_failure_still_reports_success(self, client_for, customer, order):
        with patch.object(
            PaymentDjangoRepository, "create", side_effect=DatabaseError("disk full")
        ):
            response = client_for(customer).post(URL, _body(order.id), format="json")

        assert response.status_code == 200
        data = response.json()
        assert data["payment_recorded"] is False
        assert data["warning"] == PARTIAL_FAILURE_WARNING
        assert data["error"] == ["payment record: disk full"]
        assert Order.objects.get(id=order.id).status == "paid"

    def test_second_gateway_id_is_flagged(self, client_for, customer, order):
        client = client_for(customer)
        client.post(URL, _body(order.id, "pay_A"), format="json")

        response = client.post(URL, _body(order.id, "pay_B"), format="json")

        assert response.status_code == 201
        assert response.json()["anomaly"] is True

    def test_missing_gateway_id_returns_400(self, client_for, customer, order):
        body = _body(order.id)
        del body["gateway_payment_id"]
        response = client_for(customer).post(URL, body, format="json")
        assert response.status_code == 400

    def test_blank_gateway_id_returns_400(self, client_for, customer, order):
        response = client_for(customer).post(
            URL, _body(order.id, gateway_payment_id="   "), format="json"
        )
        assert response.status_code == 400
        assert Payment.objects.count() == 0

    def test_other_customer_gets_403(self, client_for, other_customer, order):
        response = client_for(other_customer).post(URL, _body(order.id), format="json")

        assert response.status_code == 403
        assert Payment.objects.count() == 0
        assert Order.objects.get(id=order.id).status == "pending"

    def test_unknown_order_returns_404(self, client_for, customer):
        response = client_for(customer).post(URL, _body("ORD-0-NOPE"), format="json")
        assert response.status_code == 404

    def test_unauthenticated_returns_401(self, api_client, order):
        assert api_client.post(URL, _body(order.id), format="json").status_code == 401
