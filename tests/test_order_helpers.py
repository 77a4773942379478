import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from routers.orders.helpers import compute_order_total, line_total, generate_order_number, to_money, to_quantity
from routers.orders.schemas import OrderCreate


def test_total_is_subtotal_plus_charges_minus_discount():
    assert compute_order_total("100", "5", "10", "15") == Decimal("100.00")
    assert compute_order_total(Decimal("250.10"), 12.5, 0, 0) == Decimal("262.60")


def test_total_defaults_to_subtotal():
    assert compute_order_total(99.999) == Decimal("100.00")


def test_line_total_rounds_half_up_to_cents():
    assert line_total("33.33", 3) == Decimal("99.99")
    assert line_total("0.125", 1) == Decimal("0.13")
    assert line_total("40", 2.5) == Decimal("100.00")


def test_to_money_treats_missing_as_zero():
    assert to_money(None) == Decimal("0.00")


def test_order_number_format():
    number = generate_order_number(datetime(2025, 10, 14, tzinfo=timezone.utc))

    assert re.fullmatch(r"ORD-20251014-[0-9A-F]{6}", number)
    assert number != generate_order_number(datetime(2025, 10, 14, tzinfo=timezone.utc))


def test_quantity_is_rounded_once_and_priced_as_stored():
    quantity = to_quantity(1.005)

    assert quantity == Decimal("1.01")
    assert line_total("10.00", quantity) == quantity * Decimal("10.00")


def test_order_number_defaults_to_the_current_utc_date():
    today = datetime.now(timezone.utc).strftime("%Y%m%d")

    assert generate_order_number().startswith(f"ORD-{today}-")


def test_order_needs_at_least_one_item():
    with pytest.raises(ValueError):
        OrderCreate(items=[], delivery_address="12 MG Road")


def test_order_rejects_repeated_products():
    with pytest.raises(ValueError):
        OrderCreate(
            items=[
                {"product_id": "7f1d8f0e-0000-4000-8000-000000000001", "quantity": 1},
                {"product_id": "7f1d8f0e-0000-4000-8000-000000000001", "quantity": 2},
            ],
            delivery_address="12 MG Road",
        )


def test_order_type_values_are_stored_as_plain_strings():
    order = OrderCreate(
        items=[{"product_id": "7f1d8f0e-0000-4000-8000-000000000001", "quantity": 1}],
        delivery_address="12 MG Road",
        order_type="group",
    )

    assert order.order_type == "group"
    assert type(order.order_type) is str
