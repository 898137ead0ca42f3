"""IntegrationEventOutbox — records events in the same unit of work as entity writes."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from ..ports.outbox import OutboxEntry, OutboxStatus
from ..ports.store import ItemAbsent, Put
from ..primitives.id_generator import UUID4Generator

if TYPE_CHECKING:
    from ..domain.events import IntegrationEvent
    from ..primitives.id_generator import IIDGenerator
    from ..unit_of_work import UnitOfWork

logger = logging.getLogger("saga_outbox.outbox")


class IntegrationEventOutbox:
    """
    Appends outbox entries to a unit of work.

    The entry is registered next to the entity writes that caused it and
    commits with them or not at all, so a state change is never announced
    without being stored, nor stored without being announced.
    """

    def __init__(
        self,
        table: str,
        uow: UnitOfWork,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._table = table
        self._uow = uow
        self._ids = id_generator or UUID4Generator()

    def add(self, event: IntegrationEvent) -> OutboxEntry:
        entry = OutboxEntry(
            id=self._ids.next_id(),
            name=event.name,
            payload=json.dumps(event.payload),
            status=OutboxStatus.NOT_PUBLISHED,
            correlation_id=self._uow.correlation_id,
        )
        self._uow.register(
            Put(table=self._table, item=entry.to_item(), condition=ItemAbsent())
        )
        logger.debug(
            "Outbox entry %s (%s) registered for %s",
            entry.id,
            entry.name,
            entry.correlation_id,
        )
        return entry
