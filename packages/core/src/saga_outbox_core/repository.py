"""Repository — typed CRUD facade that turns entity changes into write descriptors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from .domain.entity import Entity
from .ports.store import FieldChange, FieldEquals, ItemAbsent, Put, Update
from .primitives.exceptions import ImmutableEntityError

if TYPE_CHECKING:
    from .ports.store import ITransactionalStore
    from .unit_of_work import UnitOfWork

T = TypeVar("T", bound=Entity)

logger = logging.getLogger("saga_outbox.repository")


class Repository(Generic[T]):
    """
    Repository for one entity kind backed by one store table.

    ``add`` and ``update`` only *register* operations on the unit of work;
    nothing is written until the unit of work commits.  Version discipline:

    * ``add`` always stores ``version = 1``.
    * ``update`` writes ``version + 1`` on condition that the stored version
      still equals the version the caller read.  A concurrent writer that
      got there first makes the commit fail, not this call.
    * The caller's ``entity.version`` advances only once the unit of work
      has committed; after a rollback or a failed commit it still holds the
      version that is actually stored.

    ``get`` reads straight from the store.  It does not see operations that
    are pending in the unit of work (no read-your-own-writes).
    """

    def __init__(
        self,
        table: str,
        entity_type: type[T],
        uow: UnitOfWork,
        store: ITransactionalStore,
    ) -> None:
        self._table = table
        self._entity_type = entity_type
        self._uow = uow
        self._store = store

    @property
    def table(self) -> str:
        return self._table

    def add(self, entity: T) -> None:
        entity.version = 1
        self._uow.register(
            Put(table=self._table, item=entity.to_item(), condition=ItemAbsent())
        )

    def update(self, entity: T) -> None:
        """Register a versioned update; ``entity.version`` follows on commit."""
        entity_type = type(entity)
        if entity_type.is_immutable():
            raise ImmutableEntityError(entity_type.__name__, entity.id)

        expected_version = entity.version
        new_version = expected_version + 1
        changes = tuple(
            FieldChange(name, value)
            for name, value in entity.updatable_values().items()
        )
        self._uow.register(
            Update(
                table=self._table,
                key=entity.id,
                changes=(*changes, FieldChange("version", new_version)),
                condition=FieldEquals("version", expected_version),
            )
        )

        async def _advance_version() -> None:
            entity.version = new_version

        self._uow.on_commit(_advance_version)
        logger.debug(
            "%s %s: update registered (version %d -> %d)",
            entity_type.__name__,
            entity.id,
            expected_version,
            new_version,
        )

    async def get(self, entity_id: str) -> T | None:
        item = await self._store.get_item(self._table, entity_id)
        if item is None:
            return None
        return self._entity_type.from_item(item)
