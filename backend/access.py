"""
Secured data access for the marketplace tables

SecureAccess is the only path from routers to storage. Each call takes the
caller explicitly and runs, in order: constraint validation, row-security
policies, referential checks, the write itself, and timestamp stamping.

Unauthorized reads come back empty and unauthorized updates/deletes affect
zero rows. Inserts (and updates whose new values fail WITH CHECK) raise
RowSecurityViolation. Nothing is committed here; the caller owns the
transaction, and any violation rolls the whole transaction back.
"""
from typing import Any, Callable, Dict, List, Optional, Sequence
from datetime import datetime
from fastapi import Depends
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db
from models import Base, Users
from dependencies.caller import Caller
from dependencies.row_security import Operation, authorize, check_new_row
from utils.constraints import validate_insert, validate_update
from utils.errors import (
    AuthorizationDenied,
    RowSecurityViolation,
    ReferentialIntegrityViolation,
    translate_integrity_error,
    fk_constraint_name,
)
from utils.timestamps import utc_now, stamp_updated_at, stamp_created
import logging

logger = logging.getLogger(__name__)


def _row_values(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.key) for column in row.__table__.columns}


class SecureAccess:
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    # =================
    # READS
    # =================

    def _visible(self, caller: Caller, model, operation: Operation = Operation.SELECT):
        decision = authorize(caller, operation, model)
        if not decision.allowed:
            return None
        stmt = select(model)
        if decision.row_filter is not None:
            stmt = stmt.where(decision.row_filter)
        return stmt

    async def select(
        self,
        caller: Caller,
        model,
        *criteria,
        order_by: Sequence = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Any]:
        """Rows of the table the caller may read, narrowed by criteria"""
        stmt = self._visible(caller, model)
        if stmt is None:
            return []
        stmt = stmt.where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self, caller: Caller, model, *criteria) -> int:
        stmt = self._visible(caller, model)
        if stmt is None:
            return 0
        count_stmt = select(func.count()).select_from(stmt.where(*criteria).subquery())
        return (await self.db.scalar(count_stmt)) or 0

    async def get(self, caller: Caller, model, row_id) -> Optional[Any]:
        """A single row by id, or None when it does not exist or is not visible"""
        rows = await self.select(caller, model, model.id == row_id)
        return rows[0] if rows else None

    async def own_profile(self, caller: Caller, model) -> Optional[Any]:
        """The caller's vendor or supplier profile, if they have one"""
        if caller.user_id is None:
            return None
        rows = await self.select(caller, model, model.user_id == caller.user_id)
        return rows[0] if rows else None

    # =================
    # WRITES
    # =================

    async def insert(self, caller: Caller, model, values: Dict[str, Any]):
        table = model.__tablename__
        row_values = validate_insert(model, values)

        decision = authorize(caller, Operation.INSERT, model)
        if not decision.allowed or not await check_new_row(self.db, caller, Operation.INSERT, model, row_values):
            logger.warning(f"Insert denied - Caller: {caller}, Table: {table}")
            raise RowSecurityViolation(table, Operation.INSERT.value)

        await self._check_references(model, row_values)

        row = model(**stamp_created(model, row_values, self.clock()))
        self.db.add(row)
        await self._flush(table)
        await self.db.refresh(row)
        logger.info(f"Inserted {table} row {row.id} - Caller: {caller}")
        return row

    async def update(self, caller: Caller, model, row_id, changes: Dict[str, Any]):
        """
        Update one row. Returns the updated row, or None when no row matched
        the caller's USING predicates (zero rows affected).
        """
        table = model.__tablename__
        stmt = self._visible(caller, model, Operation.UPDATE)
        if stmt is None:
            return None

        result = await self.db.execute(stmt.where(model.id == row_id).with_for_update())
        row = result.scalar_one_or_none()
        if row is None:
            logger.info(f"Update matched no rows - Caller: {caller}, Table: {table}, Id: {row_id}")
            return None

        normalized = validate_update(model, changes)
        new_values = {**_row_values(row), **normalized}
        if not await check_new_row(self.db, caller, Operation.UPDATE, model, new_values):
            logger.warning(f"Update denied by WITH CHECK - Caller: {caller}, Table: {table}, Id: {row_id}")
            await self.db.rollback()
            raise RowSecurityViolation(table, Operation.UPDATE.value)

        await self._check_references(model, normalized)

        for key, value in stamp_updated_at(table, normalized, self.clock()).items():
            setattr(row, key, value)
        await self._flush(table)
        await self.db.refresh(row)
        logger.info(f"Updated {table} row {row_id} - Caller: {caller}, Fields: {sorted(normalized)}")
        return row

    async def update_where(self, caller: Caller, model, *criteria, changes: Dict[str, Any]) -> List[Any]:
        """Apply the same changes to every row the caller may update that matches criteria"""
        stmt = self._visible(caller, model, Operation.UPDATE)
        if stmt is None:
            return []
        result = await self.db.execute(stmt.where(*criteria))
        updated = []
        for row_id in [row.id for row in result.scalars().all()]:
            row = await self.update(caller, model, row_id, changes)
            if row is not None:
                updated.append(row)
        return updated

    async def delete(self, caller: Caller, model, row_id) -> int:
        """Delete one row; returns the number of rows affected (0 or 1)"""
        table = model.__tablename__
        stmt = self._visible(caller, model, Operation.DELETE)
        if stmt is None:
            return 0

        result = await self.db.execute(stmt.where(model.id == row_id))
        row = result.scalar_one_or_none()
        if row is None:
            logger.info(f"Delete matched no rows - Caller: {caller}, Table: {table}, Id: {row_id}")
            return 0

        await self._check_restricted(model, row_id)

        try:
            await self.db.execute(delete(model).where(model.id == row_id))
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e, table)
        logger.info(f"Deleted {table} row {row_id} - Caller: {caller}")
        return 1

    async def remove_account(self, caller: Caller, user_id) -> int:
        """
        Remove an identity-provider account mirror row. Profiles and everything
        hanging off them go with it through ON DELETE CASCADE.
        """
        if not caller.is_service:
            raise AuthorizationDenied("Only the service role can remove accounts")
        try:
            result = await self.db.execute(delete(Users).where(Users.id == user_id))
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e, Users.__tablename__)
        self.db.expire_all()
        logger.info(f"Removed account {user_id} ({result.rowcount} rows)")
        return result.rowcount

    # =================
    # INTEGRITY
    # =================

    async def _flush(self, table: str):
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e, table)

    async def _check_references(self, model, values: Dict[str, Any]):
        """Referenced rows must exist; checked without row security, as storage does"""
        for fk in model.__table__.foreign_key_constraints:
            local = fk.columns[0]
            value = values.get(local.name)
            if value is None:
                continue
            target = fk.elements[0].column
            exists = await self.db.scalar(select(target).where(target == value))
            if exists is None:
                await self.db.rollback()
                raise ReferentialIntegrityViolation(
                    fk_constraint_name(fk),
                    message=f"{local.name}={value} is not present in table \"{target.table.name}\""
                )

    async def _check_restricted(self, model, row_id):
        """Refuse to delete a row that RESTRICT foreign keys still point at"""
        for table in Base.metadata.sorted_tables:
            for fk in table.foreign_key_constraints:
                if fk.referred_table is not model.__table__ or (fk.ondelete or "").upper() != "RESTRICT":
                    continue
                local = fk.columns[0]
                referenced = await self.db.scalar(select(func.count()).select_from(table).where(local == row_id))
                if referenced:
                    await self.db.rollback()
                    raise ReferentialIntegrityViolation(
                        fk_constraint_name(fk),
                        message=f"{model.__tablename__} row {row_id} is still referenced from table \"{table.name}\""
                    )


def get_access(db: AsyncSession = Depends(get_db)) -> SecureAccess:
    return SecureAccess(db)
