"""Integration tests for the return endpoints.

Covers:
- POST/GET /api/v1/orders/{order_id}/returns/ (owner).
- GET /api/v1/returns/ (staff) with filters.
- POST /api/v1/returns/{id}/approve|reject|receive/ (staff).
"""

from __future__ import annotations

import pytest

from modules.returns.models import Return

pytestmark = pytest.mark.integration


def _order_returns_url(order_id):
    return f"/api/v1/orders/{order_id}/returns/"


@pytest.fixture()
def return_request(client_for, customer, paid_order):
    response = client_for(customer).post(
        _order_returns_url(paid_order.id), {"reason": "Wrong size"}, format="json"
    )
    return response.json()


class TestOrderReturns:
    def test_owner_requests_return(self, client_for, customer, paid_order):
        response = client_for(customer).post(
            _order_returns_url(paid_order.id), {"reason": "Wrong size"}, format="json"
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "requested"
        assert data["order_number"] == paid_order.order_number
        assert data["owner_id"] == customer.id

    def test_owner_lists_returns(
        self, client_for, customer, paid_order, return_request
    ):
        response = client_for(customer).get(_order_returns_url(paid_order.id))

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [return_request["id"]]

    def test_blank_reason_returns_400(self, client_for, customer, paid_order):
        response = client_for(customer).post(
            _order_returns_url(paid_order.id), {"reason": "  "}, format="json"
        )
        assert response.status_code == 400
        assert Return.objects.count() == 0

    def test_staff_cannot_request(self, client_for, staff_user, paid_order):
        response = client_for(staff_user).post(
            _order_returns_url(paid_order.id), {"reason": "On behalf"}, format="json"
        )
        assert response.status_code == 403

    def test_other_customer_gets_403(self, client_for, other_customer, paid_order):
        response = client_for(other_customer).get(_order_returns_url(paid_order.id))
        assert response.status_code == 403

    def test_unknown_order_returns_404(self, client_for, customer):
        response = client_for(customer).post(
            _order_returns_url("00000000-0000-0000-0000-000000000000"),
            {"reason": "Lost"},
            format="json",
        )
        assert response.status_code == 404


class TestStaffReturns:
    def test_staff_lists_and_filters(self, client_for, staff_user, return_request):
        client = client_for(staff_user)

        everything = client.get("/api/v1/returns/").json()
        requested = client.get("/api/v1/returns/", {"status": "requested"}).json()
        approved = client.get("/api/v1/returns/", {"status": "approved"}).json()

        assert everything["count"] == 1
        assert [r["id"] for r in requested["results"]] == [return_request["id"]]
        assert approved["count"] == 0

    def test_filter_by_order_number(
        self, client_for, staff_user, paid_order, return_request
    ):
        response = client_for(staff_user).get(
            "/api/v1/returns/", {"order_number": paid_order.order_number.lower()}
        )
        assert response.json()["count"] == 1

    def test_customer_cannot_list_all(self, client_for, customer, return_request):
        assert client_for(customer).get("/api/v1/returns/").status_code == 403

    def test_approve_then_receive(self, client_for, staff_user, return_request):
        client = client_for(staff_user)
        base = f"/api/v1/returns/{return_request['id']}"

        approved = client.post(
            f"{base}/approve/", {"notes": "Label sent"}, format="json"
        )
        received = client.post(f"{base}/receive/", format="json")

        assert approved.status_code == 200
        assert approved.json()["staff_notes"] == "Label sent"
        assert received.json()["status"] == "received"

    def test_invalid_transition_returns_400(
        self, client_for, staff_user, return_request
    ):
        client = client_for(staff_user)
        base = f"/api/v1/returns/{return_request['id']}"

        client.post(f"{base}/reject/", format="json")
        response = client.post(f"{base}/approve/", format="json")

        assert response.status_code == 400
        assert Return.objects.get(id=return_request["id"]).status == "rejected"

    def test_customer_cannot_approve(self, client_for, customer, return_request):
        response = client_for(customer).post(
            f"/api/v1/returns/{return_request['id']}/approve/", format="json"
        )
        assert response.status_code == 403

    def test_unknown_return_returns_404(self, client_for, staff_user):
        response = client_for(staff_user).post(
            "/api/v1/returns/00000000-0000-0000-0000-000000000000/approve/",
            format="json",
        )
        assert response.status_code == 404
