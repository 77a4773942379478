"""
Row-level security for the marketplace tables

Every data access asks this module for a decision before touching storage.
Each table carries named policies per operation; a policy has a USING predicate
(which existing rows it exposes) and a WITH CHECK predicate (which new rows it
accepts). Policies of one operation are permissive: any match allows.

Predicates are SQLAlchemy expressions built against a row namespace, which is
either the mapped class (row filter for SELECT/UPDATE/DELETE) or a CandidateRow
of bound literals (evaluating a proposed INSERT/UPDATE row in the database).
"""
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from sqlalchemy import select, and_, or_, true, false, literal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement
from models import VendorProfile, SupplierProfile, Order
from dependencies.caller import Caller, ANON, AUTHENTICATED
import logging

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


Predicate = Callable[[Caller, Any], ColumnElement]


class Policy:
    def __init__(
        self,
        name: str,
        operation: Operation,
        roles: Tuple[str, ...] = (AUTHENTICATED,),
        using: Optional[Predicate] = None,
        with_check: Optional[Predicate] = None,
    ):
        self.name = name
        self.operation = operation
        self.roles = roles
        self.using = using
        self.with_check = with_check

    def applies_to(self, caller: Caller) -> bool:
        return caller.role in self.roles

    def check_predicate(self) -> Optional[Predicate]:
        # Postgres reuses USING as the new-row check when WITH CHECK is absent
        return self.with_check or self.using


class CandidateRow:
    """Column values of a row that does not exist yet, exposed as typed SQL literals"""

    def __init__(self, model, values: Dict[str, Any]):
        self._model = model
        self._values = values

    def __getattr__(self, name: str):
        columns = self._model.__table__.columns
        if name not in columns:
            raise AttributeError(name)
        return literal(self._values.get(name), columns[name].type)


class Decision:
    """Outcome of an authorization check: allowed or not, plus the rows it may touch"""

    def __init__(self, allowed: bool, row_filter: Optional[ColumnElement] = None, policies: Optional[List[str]] = None):
        self.allowed = allowed
        self.row_filter = row_filter
        self.policies = policies or []

    def __bool__(self) -> bool:
        return self.allowed

    def __repr__(self) -> str:
        return f"Decision(allowed={self.allowed}, policies={self.policies})"


# =================
# OWNERSHIP PREDICATES
# =================

def owns_vendor(caller: Caller, vendor_id) -> ColumnElement:
    return select(VendorProfile.id).where(
        VendorProfile.id == vendor_id,
        VendorProfile.user_id == caller.user_id
    ).exists()


def owns_supplier(caller: Caller, supplier_id) -> ColumnElement:
    return select(SupplierProfile.id).where(
        SupplierProfile.id == supplier_id,
        SupplierProfile.user_id == caller.user_id
    ).exists()


def is_registered_supplier(caller: Caller) -> ColumnElement:
    return select(SupplierProfile.id).where(SupplierProfile.user_id == caller.user_id).exists()


def owns_order(caller: Caller, order_id) -> ColumnElement:
    """Caller is the order's vendor or its assigned supplier"""
    return select(Order.id).where(
        Order.id == order_id,
        or_(owns_vendor(caller, Order.vendor_id), owns_supplier(caller, Order.supplier_id))
    ).exists()


def placed_order(caller: Caller, order_id) -> ColumnElement:
    """Caller is the vendor who placed the order"""
    return select(Order.id).join(VendorProfile, VendorProfile.id == Order.vendor_id).where(
        Order.id == order_id,
        VendorProfile.user_id == caller.user_id
    ).exists()


def _anyone(caller, row):
    return true()


def _own_account(caller, row):
    return row.user_id == caller.user_id


# =================
# POLICIES
# =================

POLICIES: Dict[str, List[Policy]] = {
    "vendors": [
        Policy("Users can view own vendor profile", Operation.SELECT, using=_own_account),
        Policy("Users can insert own vendor profile", Operation.INSERT, with_check=_own_account),
        Policy("Users can update own vendor profile", Operation.UPDATE, using=_own_account, with_check=_own_account),
    ],
    "suppliers": [
        Policy("Anyone can view all suppliers", Operation.SELECT, roles=(AUTHENTICATED, ANON), using=_anyone),
        Policy("Users can insert own supplier profile", Operation.INSERT, with_check=_own_account),
        Policy("Users can update own supplier profile", Operation.UPDATE, using=_own_account, with_check=_own_account),
    ],
    "products": [
        Policy("Anyone can view all products", Operation.SELECT, roles=(AUTHENTICATED, ANON), using=_anyone),
        Policy(
            "Suppliers can insert own products", Operation.INSERT,
            with_check=lambda c, r: owns_supplier(c, r.supplier_id)
        ),
        Policy(
            "Suppliers can update own products", Operation.UPDATE,
            using=lambda c, r: owns_supplier(c, r.supplier_id),
            with_check=lambda c, r: owns_supplier(c, r.supplier_id)
        ),
        Policy(
            "Suppliers can delete own products", Operation.DELETE,
            using=lambda c, r: owns_supplier(c, r.supplier_id)
        ),
    ],
    "orders": [
        Policy("Vendors can view own orders", Operation.SELECT, using=lambda c, r: owns_vendor(c, r.vendor_id)),
        Policy(
            "Suppliers can view orders assigned to them", Operation.SELECT,
            using=lambda c, r: owns_supplier(c, r.supplier_id)
        ),
        # open pool: unassigned orders are discoverable by every registered supplier
        Policy(
            "Suppliers can view pending unassigned orders", Operation.SELECT,
            using=lambda c, r: and_(r.supplier_id.is_(None), is_registered_supplier(c))
        ),
        Policy("Vendors can create orders", Operation.INSERT, with_check=lambda c, r: owns_vendor(c, r.vendor_id)),
        Policy(
            "Vendors can update own pending orders", Operation.UPDATE,
            using=lambda c, r: and_(owns_vendor(c, r.vendor_id), r.status == "pending"),
            with_check=lambda c, r: owns_vendor(c, r.vendor_id)
        ),
        Policy(
            "Suppliers can update order status", Operation.UPDATE,
            using=lambda c, r: owns_supplier(c, r.supplier_id),
            with_check=lambda c, r: owns_supplier(c, r.supplier_id)
        ),
    ],
    # no UPDATE or DELETE policies: line items are immutable history
    "order_items": [
        Policy(
            "Users can view order items for their orders", Operation.SELECT,
            using=lambda c, r: owns_order(c, r.order_id)
        ),
        Policy(
            "Vendors can insert order items for their orders", Operation.INSERT,
            with_check=lambda c, r: placed_order(c, r.order_id)
        ),
    ],
    "product_groups": [
        Policy("Anyone can view active product groups", Operation.SELECT, roles=(AUTHENTICATED, ANON), using=_anyone),
        Policy(
            "Suppliers can create product groups", Operation.INSERT,
            with_check=lambda c, r: owns_supplier(c, r.created_by)
        ),
        Policy(
            "Suppliers can update own product groups", Operation.UPDATE,
            using=lambda c, r: owns_supplier(c, r.created_by),
            with_check=lambda c, r: owns_supplier(c, r.created_by)
        ),
        Policy(
            "Suppliers can delete own product groups", Operation.DELETE,
            using=lambda c, r: owns_supplier(c, r.created_by)
        ),
    ],
}

def applicable_policies(caller: Caller, operation: Operation, model) -> List[Policy]:
    return [
        policy for policy in POLICIES.get(model.__tablename__, [])
        if policy.operation == operation and policy.applies_to(caller)
    ]


def authorize(caller: Caller, operation: Operation, model) -> Decision:
    """
    Decide whether the caller may run the operation on the table at all, and
    which rows it may see or target.

    Returns a Decision whose row_filter is None when no filtering applies
    (service role, or INSERT, which has no existing row to filter).
    """
    table = model.__tablename__

    if caller.is_service:
        logger.info(f"Row security bypassed - Caller: {caller}, Table: {table}, Operation: {operation.value}")
        return Decision(True, None, ["service_role"])

    policies = applicable_policies(caller, operation, model)
    if not policies:
        logger.warning(f"No policy - Caller: {caller}, Table: {table}, Operation: {operation.value}")
        return Decision(False, false())

    names = [policy.name for policy in policies]
    if operation == Operation.INSERT:
        return Decision(True, None, names)

    clauses = [policy.using(caller, model) for policy in policies if policy.using is not None]
    row_filter = or_(*clauses) if clauses else false()
    logger.info(f"Row filter applied - Caller: {caller}, Table: {table}, Operation: {operation.value}, Policies: {names}")
    return Decision(True, row_filter, names)


def new_row_check(caller: Caller, operation: Operation, model, values: Dict[str, Any]) -> ColumnElement:
    """WITH CHECK predicate for a proposed row, OR-ed across the applicable policies"""
    if caller.is_service:
        return true()

    row = CandidateRow(model, values)
    clauses = []
    for policy in applicable_policies(caller, operation, model):
        predicate = policy.check_predicate()
        if predicate is not None:
            clauses.append(predicate(caller, row))
    return or_(*clauses) if clauses else false()


async def check_new_row(db: AsyncSession, caller: Caller, operation: Operation, model, values: Dict[str, Any]) -> bool:
    """Evaluate the WITH CHECK predicate for a proposed row inside the current transaction"""
    if caller.is_service:
        return True

    clause = new_row_check(caller, operation, model, values)
    allowed = bool(await db.scalar(select(clause)))

    table = model.__tablename__
    if allowed:
        logger.info(f"New row accepted - Caller: {caller}, Table: {table}, Operation: {operation.value}")
    else:
        logger.warning(f"New row rejected - Caller: {caller}, Table: {table}, Operation: {operation.value}")
    return allowed
