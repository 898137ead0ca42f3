"""InMemoryTransactionalStore — dict-backed fake with real all-or-nothing batches."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from ...ports.store import FieldEquals, ITransactionalStore, Put, Update
from ...primitives.exceptions import TransactionConflictError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ...ports.store import WriteOperation

Tables = dict[str, dict[str, dict[str, Any]]]


class InMemoryTransactionalStore(ITransactionalStore):
    """In-memory implementation of ``ITransactionalStore``.

    Each batch is applied to a staged copy of the table index and swapped
    in only when every operation succeeded.  No ``await`` happens between
    staging and swapping, so a batch is atomic within the event loop.
    Items are deep-copied on the way in and out.
    """

    def __init__(self) -> None:
        self._tables: Tables = {}

    async def transact_write(self, operations: Sequence[WriteOperation]) -> None:
        staged: Tables = {name: dict(rows) for name, rows in self._tables.items()}
        for index, operation in enumerate(operations):
            rows = staged.setdefault(operation.table, {})
            if isinstance(operation, Put):
                self._apply_put(rows, index, operation)
            else:
                self._apply_update(rows, index, operation)
        self._tables = staged

    async def get_item(self, table: str, key: str) -> dict[str, Any] | None:
        item = self._tables.get(table, {}).get(key)
        return copy.deepcopy(item) if item is not None else None

    async def scan(self, table: str, **equals: Any) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(item)
            for item in self._tables.get(table, {}).values()
            if all(item.get(name) == value for name, value in equals.items())
        ]

    @staticmethod
    def _apply_put(rows: dict[str, dict[str, Any]], index: int, op: Put) -> None:
        if op.condition is not None and op.key in rows:
            raise TransactionConflictError(
                f"{op.table}: item {op.key!r} already exists", operation_index=index
            )
        rows[op.key] = copy.deepcopy(dict(op.item))

    @staticmethod
    def _apply_update(
        rows: dict[str, dict[str, Any]], index: int, op: Update
    ) -> None:
        current = rows.get(op.key)
        if current is None:
            raise TransactionConflictError(
                f"{op.table}: item {op.key!r} does not exist", operation_index=index
            )
        if isinstance(op.condition, FieldEquals) and (
            current.get(op.condition.name) != op.condition.value
        ):
            raise TransactionConflictError(
                f"{op.table}: item {op.key!r} expected "
                f"{op.condition.name}={op.condition.value!r}, "
                f"found {current.get(op.condition.name)!r}",
                operation_index=index,
            )
        updated = dict(current)
        for change in op.changes:
            updated[change.name] = copy.deepcopy(change.value)
        rows[op.key] = updated

    # ── Test helpers ─────────────────────────────────────────────

    def items(self, table: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(item) for item in self._tables.get(table, {}).values()]

    def clear(self) -> None:
        self._tables.clear()

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._tables.values())
