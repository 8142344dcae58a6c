import itertools
from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.core.cache import cache

from rest_framework.test import APIClient

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, SetStatusDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()

ADDRESS = {
    "line1": "1 Market Street",
    "city": "San Francisco",
    "postal_code": "94105",
    "country": "US",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def client_for():
    """Factory: APIClient force-authenticated as ``user``."""

    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return make


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return User.objects.create_user(
        username="alice", email="alice@example.com", password="alice-pass-123"
    )


@pytest.fixture()
def other_customer():
    return User.objects.create_user(
        username="bob", email="bob@example.com", password="bob-pass-123"
    )


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff",
        email="staff@example.com",
        password="staff-pass-123",
        is_staff=True,
    )


# ---------------------------------------------------------------------------
# Catalog / orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_factory():
    counter = itertools.count(1)

    def make(price="100.00", name=None, status=ProductStatus.ACTIVE):
        n = next(counter)
        return Product.objects.create(
            sku=f"sku-{n:03d}",
            name=name or f"Product {n}",
            price=Decimal(price),
            image_url=f"https://cdn.example.com/products/{n}.png",
            status=status,
        )

    return make


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def make_order(order_service, product_factory):
    """Factory: create an order for ``owner`` from ``[(product, qty), ...]``."""

    def make(owner, lines=None, currency=None):
        if lines is None:
            lines = [(product_factory(), 1)]
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=quantity)
                for product, quantity in lines
            ],
            shipping_address=ADDRESS,
            billing_address=ADDRESS,
            payment_method={"type": "card", "brand": "visa"},
            currency=currency,
        )
        return order_service.create_order(owner, dto)

    return make


@pytest.fixture()
def paid_order(make_order, order_service, customer, staff_user):
    order = make_order(customer)
    return order_service.set_status(
        staff_user,
        SetStatusDTO(status="paid", payment_status="paid"),
        order_id=order.id,
    )
