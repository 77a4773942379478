"""
Error taxonomy for writes against the marketplace tables

ConstraintViolation           a column rule (range, enumeration, NOT NULL, UNIQUE) is broken
AuthorizationDenied           a row-security policy rejected the new row
ReferentialIntegrityViolation a foreign key points to a missing row, or a delete is restricted

Reads and USING mismatches never raise: they come back empty or affect zero rows.
"""
from typing import Optional
from sqlalchemy import CheckConstraint, ForeignKeyConstraint, UniqueConstraint
from sqlalchemy.exc import IntegrityError
from models import Base
import logging
import re

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for errors surfaced synchronously to the caller"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "detail": self.message}


class ConstraintViolation(MarketplaceError):
    status_code = 422

    def __init__(self, constraint: str, field: Optional[str] = None, message: Optional[str] = None):
        self.constraint = constraint
        self.field = field
        super().__init__(message or f"Value violates constraint {constraint}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["constraint"] = self.constraint
        data["field"] = self.field
        return data


class AuthorizationDenied(MarketplaceError):
    status_code = 403


class RowSecurityViolation(AuthorizationDenied):
    def __init__(self, table: str, operation: str):
        self.table = table
        self.operation = operation
        super().__init__(f'new row violates row-level security policy for table "{table}"')

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["table"] = self.table
        data["operation"] = self.operation
        return data


class ReferentialIntegrityViolation(MarketplaceError):
    status_code = 409

    def __init__(self, constraint: str, message: Optional[str] = None):
        self.constraint = constraint
        super().__init__(message or f"Write violates foreign key constraint {constraint}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["constraint"] = self.constraint
        return data


def fk_constraint_name(fk: ForeignKeyConstraint) -> str:
    """Name of a foreign key, falling back to the Postgres default naming"""
    if fk.name:
        return fk.name
    columns = "_".join(column.name for column in fk.columns)
    return f"{fk.table.name}_{columns}_fkey"


def _driver_constraint_name(exc: IntegrityError) -> Optional[str]:
    """Constraint name reported by asyncpg / psycopg, if the driver exposes one"""
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
        diag = getattr(candidate, "diag", None)
        if diag is not None and getattr(diag, "constraint_name", None):
            return diag.constraint_name
    return None


def _find_constraint(name: str):
    for table in Base.metadata.tables.values():
        for constraint in table.constraints:
            if constraint.name == name:
                return constraint
            if isinstance(constraint, ForeignKeyConstraint) and fk_constraint_name(constraint) == name:
                return constraint
    return None


def _unique_by_columns(table_name: str, columns: list):
    table = next((t for t in Base.metadata.tables.values() if t.name == table_name), None)
    if table is None:
        return None
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and sorted(c.name for c in constraint.columns) == sorted(columns):
            return constraint
    return None


def translate_integrity_error(exc: IntegrityError, table_name: str) -> MarketplaceError:
    """Map a storage IntegrityError onto the error taxonomy, naming the violated constraint"""
    message = str(exc.orig)
    name = _driver_constraint_name(exc)

    if name is None:
        # SQLite reports "UNIQUE constraint failed: orders.order_number"
        match = re.search(r"UNIQUE constraint failed: ([\w.,\s]+)", message)
        if match:
            qualified = [part.strip() for part in match.group(1).split(",")]
            columns = [part.split(".")[-1] for part in qualified]
            owner = qualified[0].split(".")[0] if "." in qualified[0] else table_name
            constraint = _unique_by_columns(owner, columns)
            name = constraint.name if constraint is not None else f"{owner}_{'_'.join(columns)}_key"
            return ConstraintViolation(name, field=columns[0], message=f"Duplicate value violates unique constraint {name}")

        match = re.search(r"CHECK constraint failed: (\w+)", message)
        if match:
            name = match.group(1)

        match = re.search(r"NOT NULL constraint failed: (\w+)\.(\w+)", message)
        if match:
            return ConstraintViolation(
                f"{match.group(1)}_{match.group(2)}_not_null",
                field=match.group(2),
                message=f"{match.group(2)} is required"
            )

        if "FOREIGN KEY constraint failed" in message:
            return ReferentialIntegrityViolation(f"{table_name}_fkey", message="Write violates a foreign key constraint")

    if name is not None:
        constraint = _find_constraint(name)
        if isinstance(constraint, ForeignKeyConstraint) or name.endswith("_fkey"):
            return ReferentialIntegrityViolation(name)
        if isinstance(constraint, UniqueConstraint) or name.endswith("_key"):
            field = next(iter(constraint.columns)).name if constraint is not None else None
            return ConstraintViolation(name, field=field, message=f"Duplicate value violates unique constraint {name}")
        if isinstance(constraint, CheckConstraint) or name.endswith("_check"):
            return ConstraintViolation(name)
        return ConstraintViolation(name)

    logger.error(f"Unrecognised integrity error on {table_name}: {message}")
    return ConstraintViolation(f"{table_name}_integrity", message="Write violates a table constraint")
