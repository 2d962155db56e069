"""Typed gateway interface over the hosted record store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence
from uuid import UUID

from pydantic import BaseModel


class Table(str, Enum):
    """Record types reachable through the gateway."""
    PROFILES = "profiles"
    TOURS = "tours"
    BOOKINGS = "bookings"
    BOOKINGS_BACKUP = "bookings_backup"


class FilterOp(str, Enum):
    """Supported filter operators."""
    EQ = "eq"
    IN = "in"
    ILIKE = "ilike"


@dataclass(frozen=True)
class Filter:
    """A single column predicate; filters passed together are AND-ed."""
    column: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class Order:
    """Ordering on one column."""
    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, FilterOp.EQ, value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, FilterOp.IN, list(values))


def ilike(column: str, pattern: str) -> Filter:
    return Filter(column, FilterOp.ILIKE, pattern)


class Gateway(ABC):
    """
    CRUD and filtered-query access to the four record tables.

    Every call is an independent request against the store: there is no
    transaction spanning two calls. Rows come back as validated Pydantic
    row models. Store failures raise GatewayError; missing rows raise
    NotFoundError.
    """

    @abstractmethod
    async def list(
        self,
        table: Table,
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[BaseModel]:
        """Return rows matching all filters."""

    @abstractmethod
    async def get(self, table: Table, row_id: UUID) -> BaseModel:
        """Return one row by primary key."""

    @abstractmethod
    async def insert(self, table: Table, row: Mapping[str, Any]) -> BaseModel:
        """Insert one row and return it as stored."""

    @abstractmethod
    async def insert_many(self, table: Table, rows: Sequence[Mapping[str, Any]]) -> list[BaseModel]:
        """Insert several rows in one request; either all are stored or none."""

    @abstractmethod
    async def update(
        self,
        table: Table,
        row_id: UUID,
        patch: Mapping[str, Any],
        expected: Sequence[Filter] = (),
    ) -> BaseModel:
        """
        Apply a partial update and return the updated row.

        With ``expected`` filters the write only lands while the stored row
        still matches them; otherwise StaleWriteError is raised and nothing
        changes.
        """

    @abstractmethod
    async def delete(self, table: Table, row_id: UUID) -> None:
        """Delete one row by primary key."""

    @abstractmethod
    async def delete_where(self, table: Table, filters: Sequence[Filter]) -> int:
        """Delete all rows matching the filters in one request; returns the count."""
