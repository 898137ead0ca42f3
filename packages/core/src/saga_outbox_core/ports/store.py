"""ITransactionalStore — atomic multi-item store protocol and write descriptors.

Repositories and the outbox never talk to a database directly.  They
compile their intent into the small set of descriptors below and hand them
to a Unit of Work, which submits the whole batch through
:meth:`ITransactionalStore.transact_write` in one go.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@dataclass(frozen=True)
class FieldChange:
    """Assignment of *value* to the attribute *name*."""

    name: str
    value: Any


@dataclass(frozen=True)
class ItemAbsent:
    """Precondition: no item with the same key exists yet."""


@dataclass(frozen=True)
class FieldEquals:
    """Precondition: the stored attribute *name* currently equals *value*."""

    name: str
    value: Any


Condition = Union[ItemAbsent, FieldEquals]


@dataclass(frozen=True)
class Put:
    """Insert *item* into *table*; the item's ``id`` is its key."""

    table: str
    item: Mapping[str, Any]
    condition: ItemAbsent | None = field(default_factory=ItemAbsent)

    @property
    def key(self) -> str:
        return str(self.item["id"])


@dataclass(frozen=True)
class Update:
    """Apply *changes* to the existing item *key* of *table*.

    The item must exist.  When *condition* is given, the write only
    happens if it holds against the stored item.
    """

    table: str
    key: str
    changes: tuple[FieldChange, ...]
    condition: FieldEquals | None = None


WriteOperation = Union[Put, Update]


@runtime_checkable
class ITransactionalStore(Protocol):
    """
    Port for a store that applies batches of conditional writes atomically.

    Adapters: ``InMemoryTransactionalStore`` (tests) and
    ``SQLAlchemyTransactionalStore`` (saga-outbox-persistence-sqlalchemy).
    """

    async def transact_write(self, operations: Sequence[WriteOperation]) -> None:
        """
        Apply every operation or none of them.

        Raises:
            TransactionConflictError: A precondition did not hold.
            BackendError: The backend rejected or failed the transaction.
        """
        ...

    async def get_item(self, table: str, key: str) -> dict[str, Any] | None:
        """Point lookup; ``None`` when no item exists."""
        ...

    async def scan(self, table: str, **equals: Any) -> list[dict[str, Any]]:
        """Return every item of *table* whose attributes equal *equals*."""
        ...
