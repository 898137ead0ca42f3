"""OutboxPublisher — relays one invocation's outbox entries to the event bus."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..ports.messaging import BusEvent
from ..ports.outbox import OutboxEntry, OutboxStatus
from ..primitives.exceptions import BackendError, ConflictError
from ..retry import RetryPolicy
from .lifecycle import transition

if TYPE_CHECKING:
    from ..ports.messaging import IEventBus
    from ..ports.store import ITransactionalStore

logger = logging.getLogger("saga_outbox.publisher")


class PublishOutcome(str, Enum):
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    UNRECORDED = "UNRECORDED"


@dataclass
class PublishReport:
    """Per-entry results of one publish pass.

    ``unrecorded`` entries reached the bus but their PUBLISHED status could
    not be written; they are still IN_PROGRESS in the store.
    """

    correlation_id: str
    published: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    unrecorded: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.published)
            + len(self.failed)
            + len(self.skipped)
            + len(self.unrecorded)
        )

    def record(self, entry_id: str, outcome: PublishOutcome) -> None:
        if outcome is PublishOutcome.PUBLISHED:
            self.published.append(entry_id)
        elif outcome is PublishOutcome.FAILED:
            self.failed.append(entry_id)
        elif outcome is PublishOutcome.UNRECORDED:
            self.unrecorded.append(entry_id)
        else:
            self.skipped.append(entry_id)


class OutboxPublisher:
    """
    Publishes the NOT_PUBLISHED entries of one correlation id.

    Runs after the originating commit as a separate, non-atomic step.  If
    the process dies in between, a later pass for the same correlation id
    finds the entries again, so delivery is at-least-once.

    Lifecycle per entry (entries run as independent concurrent tasks,
    at most ``max_concurrency`` at a time):

    1. Claim: NOT_PUBLISHED → IN_PROGRESS.  A conflict means another pass
       owns the entry; it is skipped.
    2. Deliver to the bus under the retry policy.
    3. IN_PROGRESS → PUBLISHED on success, IN_PROGRESS → FAILED once
       retries are exhausted.

    One entry's failure never fails the pass or the other entries.  FAILED
    entries stay FAILED; remediation happens out of band.
    """

    def __init__(
        self,
        store: ITransactionalStore,
        bus: IEventBus,
        *,
        table: str,
        source: str,
        retry_policy: RetryPolicy | None = None,
        max_concurrency: int = 10,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._store = store
        self._bus = bus
        self._table = table
        self._source = source
        self._retry_policy = retry_policy or RetryPolicy()
        # Status writes retry backend faults only; a conflict will not clear
        self._status_retry_policy = self._retry_policy.replace(
            retry_on=(BackendError,)
        )
        self._max_concurrency = max_concurrency

    async def publish(self, correlation_id: str) -> PublishReport:
        """Relay every pending entry of *correlation_id*.

        A failure to scan the outbox propagates; the entries are untouched
        and a later pass can pick them up.
        """
        items = await self._store.scan(
            self._table,
            status=OutboxStatus.NOT_PUBLISHED.value,
            correlation_id=correlation_id,
        )
        entries = [OutboxEntry.from_item(item) for item in items]
        report = PublishReport(correlation_id=correlation_id)
        if not entries:
            logger.debug("No pending outbox entries for %s", correlation_id)
            return report

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(entry: OutboxEntry) -> PublishOutcome:
            async with semaphore:
                return await self._relay(entry)

        # return_exceptions keeps one entry's crash from cancelling the rest
        results = await asyncio.gather(
            *(_bounded(entry) for entry in entries), return_exceptions=True
        )
        for entry, result in zip(entries, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Error publishing outbox entry %s: %s",
                    entry.id,
                    result,
                    exc_info=result,
                )
                report.failed.append(entry.id)
            else:
                report.record(entry.id, result)

        logger.info(
            "Publish pass %s: %d published, %d failed, %d skipped, %d unrecorded",
            correlation_id,
            len(report.published),
            len(report.failed),
            len(report.skipped),
            len(report.unrecorded),
        )
        return report

    async def _relay(self, entry: OutboxEntry) -> PublishOutcome:
        try:
            await self._move(entry, OutboxStatus.NOT_PUBLISHED, OutboxStatus.IN_PROGRESS)
        except ConflictError:
            logger.info("Outbox entry %s already claimed, skipping", entry.id)
            return PublishOutcome.SKIPPED

        event = BusEvent(
            source=self._source,
            detail_type=entry.name,
            detail=entry.payload,
        )
        try:
            await self._retry_policy.run(lambda: self._bus.publish(event))
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Giving up on outbox entry %s (%s) after %d attempts: %s",
                entry.id,
                entry.name,
                self._retry_policy.max_attempts,
                exc,
            )
            await self._move(entry, OutboxStatus.IN_PROGRESS, OutboxStatus.FAILED)
            return PublishOutcome.FAILED

        try:
            await self._status_retry_policy.run(
                lambda: self._move(
                    entry, OutboxStatus.IN_PROGRESS, OutboxStatus.PUBLISHED
                )
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Outbox entry %s (%s) delivered, status not recorded: %s",
                entry.id,
                entry.name,
                exc,
                exc_info=True,
            )
            return PublishOutcome.UNRECORDED

        logger.debug("Published outbox entry %s (%s)", entry.id, entry.name)
        return PublishOutcome.PUBLISHED

    async def _move(
        self, entry: OutboxEntry, current: OutboxStatus, target: OutboxStatus
    ) -> None:
        await self._store.transact_write(
            [transition(self._table, entry.id, current, target)]
        )
