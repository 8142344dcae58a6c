from __future__ import annotations

import re

import pytest
from freezegun import freeze_time

from modules.orders.models import Order

pytestmark = pytest.mark.unit

ORDER_NUMBER_RE = re.compile(r"^ORD-\d{13}-[A-Z0-9]{4}$")


class TestGenerateOrderNumber:
    @freeze_time("2026-03-01 12:00:00")
    def test_embeds_epoch_millis(self):
        number = Order.generate_order_number()

        assert ORDER_NUMBER_RE.match(number)
        assert number.split("-")[1] == "1772366400000"

    @freeze_time("2026-03-01 12:00:00")
    def test_same_millisecond_differs_by_suffix(self):
        numbers = {Order.generate_order_number() for _ in range(20)}
        assert len(numbers) > 1

    def test_number_survives_save(self, make_order, customer):
        order = make_order(customer)
        number = order.order_number

        order.status = "paid"
        order.save()
        order.refresh_from_db()

        assert order.order_number == number
