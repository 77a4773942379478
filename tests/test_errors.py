from sqlalchemy.exc import IntegrityError

from utils.errors import (
    ConstraintViolation,
    ReferentialIntegrityViolation,
    RowSecurityViolation,
    translate_integrity_error,
)


class DriverError(Exception):
    """Stands in for asyncpg's exception, which carries the constraint name"""

    def __init__(self, message, constraint_name=None):
        super().__init__(message)
        self.constraint_name = constraint_name


def integrity_error(message, constraint_name=None):
    return IntegrityError("INSERT ...", {}, DriverError(message, constraint_name))


def test_named_check_constraint_from_the_driver():
    error = translate_integrity_error(
        integrity_error('violates check constraint "orders_status_check"', "orders_status_check"),
        "orders"
    )

    assert isinstance(error, ConstraintViolation)
    assert error.constraint == "orders_status_check"


def test_named_unique_constraint_from_the_driver():
    error = translate_integrity_error(
        integrity_error("duplicate key value", "orders_order_number_key"),
        "orders"
    )

    assert isinstance(error, ConstraintViolation)
    assert error.constraint == "orders_order_number_key"
    assert error.field == "order_number"


def test_named_foreign_key_from_the_driver():
    error = translate_integrity_error(
        integrity_error("violates foreign key constraint", "order_items_product_id_fkey"),
        "products"
    )

    assert isinstance(error, ReferentialIntegrityViolation)
    assert error.status_code == 409


def test_sqlite_unique_message():
    error = translate_integrity_error(
        integrity_error("UNIQUE constraint failed: suppliers.user_id"),
        "suppliers"
    )

    assert error.constraint == "suppliers_user_id_key"


def test_sqlite_check_message():
    error = translate_integrity_error(
        integrity_error("CHECK constraint failed: products_price_per_unit_check"),
        "products"
    )

    assert error.constraint == "products_price_per_unit_check"


def test_sqlite_not_null_message():
    error = translate_integrity_error(
        integrity_error("NOT NULL constraint failed: orders.delivery_address"),
        "orders"
    )

    assert error.constraint == "orders_delivery_address_not_null"
    assert error.field == "delivery_address"


def test_error_payloads():
    violation = RowSecurityViolation("orders", "insert")

    assert violation.status_code == 403
    assert violation.to_dict() == {
        "error": "RowSecurityViolation",
        "detail": 'new row violates row-level security policy for table "orders"',
        "table": "orders",
        "operation": "insert",
    }
    assert ConstraintViolation("orders_tax_check", field="tax").to_dict()["constraint"] == "orders_tax_check"
