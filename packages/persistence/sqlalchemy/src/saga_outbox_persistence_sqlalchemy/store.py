"""
SQLAlchemy implementation of the transactional store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from saga_outbox_core.ports.store import ITransactionalStore, Put
from saga_outbox_core.primitives.exceptions import (
    BackendError,
    TransactionConflictError,
)

from .exceptions import SchemaError
from .models import Base

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from saga_outbox_core.ports.store import Update, WriteOperation

logger = logging.getLogger("saga_outbox.sqlalchemy")


class SQLAlchemyTransactionalStore(ITransactionalStore):
    """
    Transactional store on top of an async SQLAlchemy engine.

    Logical table names (as used by repositories and the outbox) are mapped
    to declarative models at construction::

        store = SQLAlchemyTransactionalStore(
            async_sessionmaker(engine, expire_on_commit=False),
            {"orders": OrderModel, "integration_events": OutboxEntryModel},
        )

    Every ``transact_write`` call runs in its own database transaction:

    * ``Put`` with ``ItemAbsent`` is a plain INSERT; a primary-key violation
      is the failed precondition.
    * ``Update`` is ``UPDATE … WHERE id = :key [AND <field> = :expected]``;
      a row count other than one is the failed precondition.

    Any failure rolls the whole transaction back.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tables: Mapping[str, type[Base]],
    ) -> None:
        self._session_factory = session_factory
        self._tables: dict[str, Table] = {
            name: model.__table__ for name, model in tables.items()  # type: ignore[misc]
        }

    async def transact_write(self, operations: Sequence[WriteOperation]) -> None:
        if not operations:
            return
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for index, operation in enumerate(operations):
                        if isinstance(operation, Put):
                            await self._put(session, index, operation)
                        else:
                            await self._update(session, index, operation)
        except TransactionConflictError:
            raise
        except SQLAlchemyError as exc:
            raise BackendError(f"Failed to apply transaction: {exc}") from exc
        logger.debug("Applied %d operations", len(operations))

    async def get_item(self, table: str, key: str) -> dict[str, Any] | None:
        t = self._table(table)
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(t).where(t.c.id == key))
                row = result.first()
        except SQLAlchemyError as exc:
            raise BackendError(f"Failed to read {table}/{key}: {exc}") from exc
        return dict(row._mapping) if row is not None else None

    async def scan(self, table: str, **equals: Any) -> list[dict[str, Any]]:
        t = self._table(table)
        self._check_columns(t, equals)
        stmt = select(t).where(*(t.c[name] == value for name, value in equals.items()))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as exc:
            raise BackendError(f"Failed to scan {table}: {exc}") from exc
        return [dict(row._mapping) for row in rows]

    # ── Operations ───────────────────────────────────────────────

    async def _put(self, session: AsyncSession, index: int, op: Put) -> None:
        t = self._table(op.table)
        row = dict(op.item)
        self._check_columns(t, row)
        if op.condition is None and await self._exists(session, t, op.key):
            # Unconditional put overwrites
            await session.execute(update(t).where(t.c.id == op.key).values(**row))
            return
        try:
            await session.execute(insert(t).values(**row))
        except IntegrityError as exc:
            raise TransactionConflictError(
                f"{op.table}: item {op.key!r} already exists",
                operation_index=index,
            ) from exc

    async def _update(self, session: AsyncSession, index: int, op: Update) -> None:
        t = self._table(op.table)
        values = {change.name: change.value for change in op.changes}
        self._check_columns(t, values)
        stmt = update(t).where(t.c.id == op.key)
        if op.condition is not None:
            self._check_columns(t, [op.condition.name])
            stmt = stmt.where(t.c[op.condition.name] == op.condition.value)
        result = await session.execute(stmt.values(**values))
        if result.rowcount != 1:
            raise TransactionConflictError(
                f"{op.table}: conditional update of {op.key!r} matched no item",
                operation_index=index,
            )

    # ── Helpers ──────────────────────────────────────────────────

    @staticmethod
    async def _exists(session: AsyncSession, t: Table, key: str) -> bool:
        result = await session.execute(select(t.c.id).where(t.c.id == key))
        return result.first() is not None

    def _table(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise SchemaError(f"No model mapped for table {name!r}") from None

    @staticmethod
    def _check_columns(t: Table, names: Iterable[str]) -> None:
        unknown = [name for name in names if name not in t.c]
        if unknown:
            raise SchemaError(f"Table {t.name!r} has no columns {unknown}")


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table registered on :class:`Base`."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
