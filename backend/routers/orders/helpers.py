from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, timezone
from typing import Optional
import secrets

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_order_total(subtotal, tax=0, delivery_charge=0, group_discount=0) -> Decimal:
    """total_amount = subtotal + tax + delivery_charge - group_discount"""
    return to_money(to_money(subtotal) + to_money(tax) + to_money(delivery_charge) - to_money(group_discount))


def to_quantity(value) -> Decimal:
    """Quantities are stored with two decimals; price lines on the stored value"""
    return to_money(value)


def line_total(unit_price, quantity) -> Decimal:
    return to_money(to_money(unit_price) * Decimal(str(quantity)))


def generate_order_number(now: Optional[datetime] = None) -> str:
    """Human-readable order number, e.g. ORD-20251014-3F9A1C"""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now.strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"
