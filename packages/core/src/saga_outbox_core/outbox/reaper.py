"""OutboxReaper — fails entries abandoned in IN_PROGRESS by a crashed pass."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..ports.outbox import OutboxEntry, OutboxStatus
from ..primitives.exceptions import ConflictError
from ..utils import utc_now
from .lifecycle import transition

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime, timedelta

    from ..ports.store import ITransactionalStore

logger = logging.getLogger("saga_outbox.outbox")


class OutboxReaper:
    """
    Marks entries stuck in IN_PROGRESS for longer than a timeout as FAILED.

    A publish pass that dies between claiming an entry and recording the
    delivery result leaves it IN_PROGRESS forever.  Moving it to FAILED keeps
    the lifecycle monotone and turns it into the same durable remediation
    signal as an exhausted delivery.  Nothing is re-driven automatically.
    """

    def __init__(
        self,
        store: ITransactionalStore,
        *,
        table: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._table = table
        self._clock = clock

    async def reap(self, older_than: timedelta) -> list[str]:
        """Fail every IN_PROGRESS entry not touched within *older_than*.

        Returns the ids of the entries moved to FAILED.
        """
        now = self._clock()
        cutoff = now - older_than
        items = await self._store.scan(
            self._table, status=OutboxStatus.IN_PROGRESS.value
        )
        reaped: list[str] = []
        for entry in (OutboxEntry.from_item(item) for item in items):
            if entry.updated_at > cutoff:
                continue
            try:
                await self._store.transact_write(
                    [
                        transition(
                            self._table,
                            entry.id,
                            OutboxStatus.IN_PROGRESS,
                            OutboxStatus.FAILED,
                            at=now,
                        )
                    ]
                )
            except ConflictError:
                # The owning pass finished it after all
                logger.debug("Outbox entry %s moved on before reaping", entry.id)
                continue
            logger.warning(
                "Outbox entry %s (%s) stuck IN_PROGRESS since %s, marked FAILED",
                entry.id,
                entry.name,
                entry.updated_at.isoformat(),
            )
            reaped.append(entry.id)
        return reaped
