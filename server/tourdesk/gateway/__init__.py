"""Typed access to the record store."""

from .base import Filter, FilterOp, Gateway, Order, Table, eq, ilike, in_
from .sqlalchemy_gateway import SqlAlchemyGateway

__all__ = [
    "Filter",
    "FilterOp",
    "Gateway",
    "Order",
    "SqlAlchemyGateway",
    "Table",
    "eq",
    "ilike",
    "in_",
]
