"""Unit tests for order DTO validation and normalisation."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import MAX_ITEM_QUANTITY
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderListQueryDTO,
    UpdateShipmentDTO,
)

pytestmark = pytest.mark.unit


def _order_dto(**overrides):
    data = {
        "items": [CreateOrderItemDTO(product_id=uuid4())],
        "shipping_address": {"line1": "x"},
        "billing_address": {"line1": "x"},
        "payment_method": "card",
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


class TestCreateOrderItemDTO:
    @pytest.mark.parametrize("quantity", [None, 0, -3])
    def test_missing_or_non_positive_quantity_defaults_to_one(self, quantity):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=quantity)
        assert dto.quantity == 1

    def test_positive_quantity_kept(self):
        assert CreateOrderItemDTO(product_id=uuid4(), quantity=4).quantity == 4

    def test_quantity_above_cap_rejected(self):
        with pytest.raises(ValidationError):
            CreateOrderItemDTO(product_id=uuid4(), quantity=MAX_ITEM_QUANTITY + 1)

    def test_quantity_at_cap_kept(self):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=MAX_ITEM_QUANTITY)
        assert dto.quantity == MAX_ITEM_QUANTITY

    def test_is_frozen(self):
        dto = CreateOrderItemDTO(product_id=uuid4())
        with pytest.raises(ValidationError):
            dto.quantity = 5


class TestCreateOrderDTO:
    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _order_dto(items=[])

    def test_currency_is_uppercased(self):
        assert _order_dto(currency=" eur ").currency == "EUR"

    def test_blank_currency_means_default(self):
        assert _order_dto(currency="").currency is None

    def test_invalid_currency_rejected(self):
        with pytest.raises(ValidationError, match="3-letter"):
            _order_dto(currency="E1R")


class TestOrderListQueryDTO:
    def test_defaults(self):
        query = OrderListQueryDTO()
        assert (query.page, query.limit, query.offset) == (1, 20, 0)

    def test_out_of_range_values_clamped(self):
        query = OrderListQueryDTO(page=0, limit=1000)
        assert query.page == 1
        assert query.limit == 100

    def test_limit_ceiling_is_configurable(self):
        assert OrderListQueryDTO(limit=80, max_limit=50).limit == 50

    def test_garbage_falls_back_to_defaults(self):
        query = OrderListQueryDTO(page="abc", limit="xyz")
        assert (query.page, query.limit) == (1, 20)

    def test_offset(self):
        assert OrderListQueryDTO(page=3, limit=10).offset == 20

    def test_blank_filters_are_none(self):
        query = OrderListQueryDTO(search="  ", status="", payment_status=None)
        assert query.search is None
        assert query.status is None


class TestUpdateShipmentDTO:
    def test_changes_only_include_provided_fields(self):
        assert UpdateShipmentDTO(status="in_transit").changes() == {
            "status": "in_transit"
        }
