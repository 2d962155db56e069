"""Gateway implementation over async SQLAlchemy sessions."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Sequence
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as RowShapeError
from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy import update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import GatewayError, NotFoundError, StaleWriteError
from ..models import Booking, BookingBackup, Profile, Tour
from ..schemas.booking import BookingBackupRow, BookingRow
from ..schemas.profile import ProfileRow
from ..schemas.tour import TourRow
from .base import Filter, FilterOp, Gateway, Order, Table

logger = logging.getLogger(__name__)

# Table -> (ORM model, row schema, resource name)
TABLE_BINDINGS: dict[Table, tuple[type, type[BaseModel], str]] = {
    Table.PROFILES: (Profile, ProfileRow, "profile"),
    Table.TOURS: (Tour, TourRow, "tour"),
    Table.BOOKINGS: (Booking, BookingRow, "booking"),
    Table.BOOKINGS_BACKUP: (BookingBackup, BookingBackupRow, "booking backup"),
}


def _to_storage(value: Any) -> Any:
    """Convert enums and nested row models into plain column values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_to_storage(item) for item in value]
    return value


def _describe(exc: Exception) -> str:
    return str(getattr(exc, "orig", None) or exc)


class SqlAlchemyGateway(Gateway):
    """
    Gateway backed by a relational database.

    Each call opens its own session and commits before returning, so a call
    behaves like one request against a hosted backend.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    def _columns(self, table: Table):
        model = TABLE_BINDINGS[table][0]
        return model.__table__.c

    def _column(self, table: Table, name: str):
        columns = self._columns(table)
        if name not in columns:
            raise GatewayError(
                detail=f"Unknown column '{name}' on table '{table.value}'",
                operation="query",
                table=table.value,
            )
        return columns[name]

    def _condition(self, table: Table, flt: Filter):
        column = self._column(table, flt.column)
        value = _to_storage(flt.value)
        if flt.op is FilterOp.EQ:
            return column.is_(None) if value is None else column == value
        if flt.op is FilterOp.IN:
            return column.in_(value)
        if flt.op is FilterOp.ILIKE:
            return column.ilike(value)
        raise GatewayError(detail=f"Unsupported filter operator {flt.op!r}", table=table.value)

    def _values(self, table: Table, row: Mapping[str, Any], operation: str) -> dict[str, Any]:
        columns = self._columns(table)
        unknown = sorted(set(row) - set(columns.keys()))
        if unknown:
            raise GatewayError(
                detail=f"Unknown column(s) {', '.join(unknown)} on table '{table.value}'",
                operation=operation,
                table=table.value,
            )
        return {key: _to_storage(value) for key, value in row.items()}

    def _to_row(self, table: Table, record: Any) -> BaseModel:
        row_schema = TABLE_BINDINGS[table][1]
        try:
            return row_schema.model_validate(record)
        except RowShapeError as e:
            raise GatewayError(
                detail=f"Row from '{table.value}' failed shape validation: {e}",
                operation="read",
                table=table.value,
            ) from e

    def _failure(self, operation: str, table: Table, exc: Exception) -> GatewayError:
        logger.warning(
            "Gateway call failed",
            extra={"operation": operation, "table": table.value, "error": _describe(exc)}
        )
        return GatewayError(detail=_describe(exc), operation=operation, table=table.value)

    def _not_found(self, table: Table, row_id: UUID) -> NotFoundError:
        return NotFoundError(resource_type=TABLE_BINDINGS[table][2], resource_id=str(row_id))

    async def list(
        self,
        table: Table,
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[BaseModel]:
        model = TABLE_BINDINGS[table][0]
        stmt = select(model)
        for flt in filters:
            stmt = stmt.where(self._condition(table, flt))
        if order is not None:
            column = self._column(table, order.column)
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                records = result.scalars().all()
            except SQLAlchemyError as e:
                raise self._failure("list", table, e) from e

        return [self._to_row(table, record) for record in records]

    async def get(self, table: Table, row_id: UUID) -> BaseModel:
        model = TABLE_BINDINGS[table][0]
        async with self.session_factory() as session:
            try:
                record = await session.get(model, row_id)
            except SQLAlchemyError as e:
                raise self._failure("get", table, e) from e

        if record is None:
            raise self._not_found(table, row_id)
        return self._to_row(table, record)

    async def insert(self, table: Table, row: Mapping[str, Any]) -> BaseModel:
        stored = await self.insert_many(table, [row])
        return stored[0]

    async def insert_many(self, table: Table, rows: Sequence[Mapping[str, Any]]) -> list[BaseModel]:
        model = TABLE_BINDINGS[table][0]
        records = [model(**self._values(table, row, "insert")) for row in rows]

        async with self.session_factory() as session:
            try:
                session.add_all(records)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._failure("insert", table, e) from e

        logger.debug("Inserted rows", extra={"table": table.value, "count": len(records)})
        return [self._to_row(table, record) for record in records]

    async def update(
        self,
        table: Table,
        row_id: UUID,
        patch: Mapping[str, Any],
        expected: Sequence[Filter] = (),
    ) -> BaseModel:
        model = TABLE_BINDINGS[table][0]
        values = self._values(table, patch, "update")
        values.pop("id", None)
        conditions = [self._condition(table, flt) for flt in expected]

        async with self.session_factory() as session:
            try:
                record = await session.get(model, row_id)
                if record is None:
                    raise self._not_found(table, row_id)
                if not values:
                    return self._to_row(table, record)

                # Compare and write in one statement so a concurrent writer cannot interleave
                stmt = (
                    sql_update(model)
                    .where(self._column(table, "id") == row_id, *conditions)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    await session.rollback()
                    logger.info(
                        "Conditional update skipped; row changed since read",
                        extra={"table": table.value, "row_id": str(row_id)}
                    )
                    raise StaleWriteError(table=table.value, row_id=str(row_id))
                await session.commit()
                await session.refresh(record)
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._failure("update", table, e) from e

        return self._to_row(table, record)

    async def delete(self, table: Table, row_id: UUID) -> None:
        model = TABLE_BINDINGS[table][0]
        async with self.session_factory() as session:
            try:
                record = await session.get(model, row_id)
                if record is None:
                    raise self._not_found(table, row_id)
                await session.delete(record)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._failure("delete", table, e) from e

    async def delete_where(self, table: Table, filters: Sequence[Filter]) -> int:
        if not filters:
            raise GatewayError(
                detail="Refusing to delete without filters",
                operation="delete",
                table=table.value,
            )

        model = TABLE_BINDINGS[table][0]
        stmt = sql_delete(model)
        for flt in filters:
            stmt = stmt.where(self._condition(table, flt))

        async with self.session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._failure("delete", table, e) from e

        return result.rowcount or 0
