"""
Column-level rules checked before any write reaches storage

Every rule carries the name of the matching database constraint so a rejected
write reports the same name whether it was caught here or by Postgres.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List
from sqlalchemy import Numeric, Float, Integer
from models import (
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    ORDER_TYPES,
    PRODUCT_GROUP_STATUSES,
)
from utils.errors import ConstraintViolation
import uuid


class Rule:
    """A named predicate over one column; NULL always passes, as with SQL CHECK"""

    def __init__(self, name: str, field: str, check: Callable[[Any], bool], message: str):
        self.name = name
        self.field = field
        self.check = check
        self.message = message

    def validate(self, value: Any):
        if value is None:
            return
        if not self.check(value):
            raise ConstraintViolation(self.name, field=self.field, message=self.message)


def non_negative(table: str, field: str) -> Rule:
    return Rule(f"{table}_{field}_check", field, lambda v: v >= 0, f"{field} must be greater than or equal to 0")


def positive(table: str, field: str) -> Rule:
    return Rule(f"{table}_{field}_check", field, lambda v: v > 0, f"{field} must be greater than 0")


def between(table: str, field: str, low, high) -> Rule:
    return Rule(
        f"{table}_{field}_check",
        field,
        lambda v: low <= v <= high,
        f"{field} must be between {low} and {high}"
    )


def one_of(table: str, field: str, allowed: Iterable[str]) -> Rule:
    allowed = tuple(allowed)
    return Rule(
        f"{table}_{field}_check",
        field,
        lambda v: v in allowed,
        f"{field} must be one of: {', '.join(allowed)}"
    )


RULES: Dict[str, List[Rule]] = {
    "vendors": [],
    "suppliers": [
        between("suppliers", "rating", 0, 5),
        non_negative("suppliers", "total_reviews"),
    ],
    "products": [
        non_negative("products", "price_per_unit"),
        positive("products", "min_order_quantity"),
    ],
    "orders": [
        one_of("orders", "order_type", ORDER_TYPES),
        one_of("orders", "status", ORDER_STATUSES),
        one_of("orders", "payment_status", PAYMENT_STATUSES),
        non_negative("orders", "total_amount"),
        non_negative("orders", "subtotal"),
        non_negative("orders", "tax"),
        non_negative("orders", "delivery_charge"),
        non_negative("orders", "group_discount"),
    ],
    "order_items": [
        positive("order_items", "quantity"),
        non_negative("order_items", "unit_price"),
        non_negative("order_items", "total_price"),
    ],
    "product_groups": [
        one_of("product_groups", "status", PRODUCT_GROUP_STATUSES),
        positive("product_groups", "quantity"),
        non_negative("product_groups", "price"),
        non_negative("product_groups", "actual_rate"),
        non_negative("product_groups", "final_rate"),
        between("product_groups", "discount_percentage", 0, 100),
        non_negative("product_groups", "estimated_value"),
        between("product_groups", "latitude", -90, 90),
        between("product_groups", "longitude", -180, 180),
        non_negative("product_groups", "vendors"),
    ],
}

# Generated or storage-owned columns callers never need to supply
STORAGE_OWNED = frozenset({"id", "created_at", "updated_at"})


def _coerce(table_name: str, column, value: Any) -> Any:
    """Bring a value into the column's Python type the way Postgres would cast it"""
    if value is None:
        return None
    column_type = column.type
    try:
        if isinstance(column_type, Numeric) and not isinstance(column_type, Float):
            number = value if isinstance(value, Decimal) else Decimal(str(value))
            if not number.is_finite():
                raise InvalidOperation
            if column_type.scale is not None:
                number = number.quantize(Decimal(1).scaleb(-column_type.scale), rounding=ROUND_HALF_UP)
            return number
        if isinstance(column_type, Float):
            return float(value)
        if isinstance(column_type, Integer) and not isinstance(value, bool):
            number = value if isinstance(value, Decimal) else Decimal(str(value))
            if not number.is_finite():
                raise InvalidOperation
            return int(number.to_integral_value(rounding=ROUND_HALF_UP))
    except (InvalidOperation, TypeError, ValueError):
        raise ConstraintViolation(
            f"{table_name}_{column.name}_type",
            field=column.name,
            message=f"{column.name} must be numeric"
        )
    return value


def _has_default(column) -> bool:
    return column.default is not None or column.server_default is not None


def apply_defaults(model, values: Dict[str, Any]) -> Dict[str, Any]:
    """Fill scalar column defaults so policies see the row as storage will write it"""
    table = model.__table__
    row = dict(values)
    for column in table.columns:
        if column.name in row:
            continue
        if column.primary_key:
            row[column.name] = uuid.uuid4()
        elif column.default is not None and column.default.is_scalar:
            row[column.name] = column.default.arg
    return row


def validate_values(model, values: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate and normalize values for an insert (partial=False) or the changed
    columns of an update (partial=True). Raises ConstraintViolation naming the rule.
    """
    table = model.__table__
    normalized: Dict[str, Any] = {}

    for key, value in values.items():
        if key not in table.columns:
            raise ConstraintViolation(f"{table.name}_{key}_unknown", field=key, message=f"Unknown column {key}")
        normalized[key] = _coerce(table.name, table.columns[key], value)

    for column in table.columns:
        if column.nullable or column.name in STORAGE_OWNED:
            continue
        missing = column.name not in normalized and not partial and not _has_default(column)
        if missing or (column.name in normalized and normalized[column.name] is None):
            raise ConstraintViolation(
                f"{table.name}_{column.name}_not_null",
                field=column.name,
                message=f"{column.name} is required"
            )

    for rule in RULES.get(table.name, []):
        if rule.field in normalized:
            rule.validate(normalized[rule.field])

    return normalized


def validate_insert(model, values: Dict[str, Any]) -> Dict[str, Any]:
    return apply_defaults(model, validate_values(model, values))


def validate_update(model, changes: Dict[str, Any]) -> Dict[str, Any]:
    pk_columns = {column.name for column in model.__table__.primary_key.columns}
    for key in changes:
        if key in pk_columns:
            raise ConstraintViolation(f"{model.__tablename__}_{key}_immutable", field=key, message=f"{key} cannot be changed")
    return validate_values(model, changes, partial=True)
