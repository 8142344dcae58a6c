"""Integration tests for order cancellation and staff status overrides.

Covers:
- PATCH /api/v1/orders/{id}/cancel/ per role and status.
- PATCH /api/v1/orders/{id}/status/ (staff): known values only,
  history, notification after commit.
- PUT /api/v1/orders/by-number/{order_number}/status/ (staff).
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core import mail

from modules.orders.models import Order, OrderStatusHistory

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


class TestCancelOrder:
    def test_owner_cancels_pending_order(self, client_for, customer, make_order):
        order = make_order(customer)

        response = client_for(customer).patch(
            f"{URL}{order.id}/cancel/", {"notes": "Changed my mind"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        history = OrderStatusHistory.objects.get(
            order_id=order.id, new_status="cancelled"
        )
        assert history.old_status == "pending"
        assert history.notes == "Changed my mind"

    def test_customer_cannot_cancel_paid_order(self, client_for, customer, paid_order):
        response = client_for(customer).patch(f"{URL}{paid_order.id}/cancel/")

        assert response.status_code == 400
        assert Order.objects.get(id=paid_order.id).status == "paid"

    def test_staff_cancels_paid_order(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).patch(f"{URL}{paid_order.id}/cancel/")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["qr_eligible"] is False

    def test_cancel_twice_is_noop(self, client_for, customer, make_order):
        order = make_order(customer)
        client = client_for(customer)

        client.patch(f"{URL}{order.id}/cancel/")
        response = client.patch(f"{URL}{order.id}/cancel/")

        assert response.status_code == 200
        assert (
            OrderStatusHistory.objects.filter(
                order_id=order.id, new_status="cancelled"
            ).count()
            == 1
        )

    def test_other_customer_gets_403(
        self, client_for, customer, other_customer, make_order
    ):
        order = make_order(customer)

        response = client_for(other_customer).patch(f"{URL}{order.id}/cancel/")

        assert response.status_code == 403
        assert Order.objects.get(id=order.id).status == "pending"

    def test_unknown_order_returns_404(self, client_for, customer):
        response = client_for(customer).patch(
            f"{URL}00000000-0000-0000-0000-000000000000/cancel/"
        )
        assert response.status_code == 404


class TestSetStatus:
    def test_staff_marks_order_paid_and_customer_is_notified(
        self,
        client_for,
        staff_user,
        customer,
        make_order,
        django_capture_on_commit_callbacks,
    ):
        order = make_order(customer)

        with django_capture_on_commit_callbacks(execute=True):
            response = client_for(staff_user).patch(
                f"{URL}{order.id}/status/",
                {"status": "paid", "payment_status": "paid"},
                format="json",
            )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "paid"
        assert data["payment_status"] == "paid"
        assert data["qr_eligible"] is True
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["alice@example.com"]
        assert len(mail.outbox[0].attachments) == 1

    def test_notification_failure_does_not_fail_the_change(
        self,
        client_for,
        staff_user,
        customer,
        make_order,
        django_capture_on_commit_callbacks,
    ):
        order = make_order(customer)

        with patch(
            "modules.notifications.dispatch.send_order_status_email.delay",
            side_effect=ConnectionError("broker unreachable"),
        ), django_capture_on_commit_callbacks(execute=True):
            response = client_for(staff_user).patch(
                f"{URL}{order.id}/status/", {"status": "shipped"}, format="json"
            )

        assert response.status_code == 200
        assert Order.objects.get(id=order.id).status == "shipped"

    def test_any_known_status_is_accepted(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).patch(
            f"{URL}{paid_order.id}/status/", {"status": "pending"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    @pytest.mark.parametrize(
        "body",
        [{"status": "teleported"}, {"status": "paid", "payment_status": "maybe"}],
    )
    def test_unknown_values_return_400(self, client_for, staff_user, paid_order, body):
        response = client_for(staff_user).patch(
            f"{URL}{paid_order.id}/status/", body, format="json"
        )
        assert response.status_code == 400
        assert Order.objects.get(id=paid_order.id).status == "paid"

    def test_missing_status_returns_400(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).patch(
            f"{URL}{paid_order.id}/status/", {}, format="json"
        )
        assert response.status_code == 400

    def test_customer_gets_403(self, client_for, customer, make_order):
        order = make_order(customer)

        response = client_for(customer).patch(
            f"{URL}{order.id}/status/", {"status": "paid"}, format="json"
        )

        assert response.status_code == 403
        assert Order.objects.get(id=order.id).status == "pending"

    def test_unknown_order_returns_404(self, client_for, staff_user):
        response = client_for(staff_user).patch(
            f"{URL}00000000-0000-0000-0000-000000000000/status/",
            {"status": "paid"},
            format="json",
        )
        assert response.status_code == 404


class TestSetStatusByNumber:
    def test_staff_updates_by_order_number(
        self, client_for, staff_user, customer, make_order
    ):
        order = make_order(customer)

        response = client_for(staff_user).put(
            f"{URL}by-number/{order.order_number}/status/",
            {"status": "paid", "payment_status": "paid", "notes": "Paid at counter"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["id"] == str(order.id)
        reloaded = Order.objects.get(id=order.id)
        assert (reloaded.status, reloaded.payment_status) == ("paid", "paid")

    def test_unknown_number_returns_404(self, client_for, staff_user):
        response = client_for(staff_user).put(
            f"{URL}by-number/ORD-0-MISSING/status/", {"status": "paid"}, format="json"
        )
        assert response.status_code == 404

    def test_customer_gets_403(self, client_for, customer, make_order):
        order = make_order(customer)

        response = client_for(customer).put(
            f"{URL}by-number/{order.order_number}/status/",
            {"status": "paid"},
            format="json",
        )

        assert response.status_code == 403
