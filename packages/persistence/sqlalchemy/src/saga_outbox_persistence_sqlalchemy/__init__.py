"""saga-outbox-persistence-sqlalchemy — transactional store on async SQLAlchemy."""

from __future__ import annotations

from .exceptions import SchemaError, SQLAlchemyPersistenceError
from .models import Base, IsoDateTime, OutboxEntryModel, VersionedItemMixin
from .store import SQLAlchemyTransactionalStore, create_schema

__all__: list[str] = [
    "Base",
    "IsoDateTime",
    "OutboxEntryModel",
    "SQLAlchemyPersistenceError",
    "SQLAlchemyTransactionalStore",
    "SchemaError",
    "VersionedItemMixin",
    "create_schema",
]
