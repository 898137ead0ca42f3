"""Exceptions for the SQLAlchemy persistence layer."""

from __future__ import annotations

from saga_outbox_core.primitives.exceptions import PersistenceError


class SQLAlchemyPersistenceError(PersistenceError):
    """Base exception for all SQLAlchemy-specific persistence errors."""


class SchemaError(SQLAlchemyPersistenceError):
    """Raised when a logical table or attribute has no mapped counterpart."""


__all__: list[str] = [
    "SQLAlchemyPersistenceError",
    "SchemaError",
]
