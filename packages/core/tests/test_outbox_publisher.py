from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from saga_outbox_core import (
    BackendError,
    BusEvent,
    DeliveryError,
    FieldChange,
    InMemoryEventBus,
    InMemoryTransactionalStore,
    IntegrationEvent,
    IntegrationEventOutbox,
    OutboxPublisher,
    OutboxStatus,
    RetryPolicy,
    UnitOfWork,
    Update,
)
from saga_outbox_core.outbox.lifecycle import transition

if TYPE_CHECKING:
    from conftest import RecordingSleep

TABLE = "integration_events"


class WidgetShipped(IntegrationEvent):
    widget_id: str


class FlakyBus(InMemoryEventBus):
    """Fails the first ``failures`` deliveries of each listed widget."""

    def __init__(self, failures: int, widget_ids: set[str] | None = None) -> None:
        super().__init__()
        self.failures = failures
        self.widget_ids = widget_ids
        self.attempts: dict[str, int] = {}

    async def publish(self, event: BusEvent) -> None:
        widget_id = json.loads(event.detail)["widgetId"]
        self.attempts[widget_id] = self.attempts.get(widget_id, 0) + 1
        affected = self.widget_ids is None or widget_id in self.widget_ids
        if affected and self.attempts[widget_id] <= self.failures:
            raise DeliveryError(f"bus unavailable for {widget_id}")
        await super().publish(event)


async def _commit_events(
    store: InMemoryTransactionalStore, *widget_ids: str
) -> UnitOfWork:
    async with UnitOfWork(store) as uow:
        outbox = IntegrationEventOutbox(TABLE, uow)
        for widget_id in widget_ids:
            outbox.add(WidgetShipped(widget_id=widget_id))
    return uow


def _publisher(
    store: InMemoryTransactionalStore,
    bus: InMemoryEventBus,
    sleep: RecordingSleep,
    **kwargs: int,
) -> OutboxPublisher:
    return OutboxPublisher(
        store,
        bus,
        table=TABLE,
        source="widget-service",
        retry_policy=RetryPolicy(sleep=sleep),
        **kwargs,
    )


def _statuses(store: InMemoryTransactionalStore) -> dict[str, str]:
    return {
        json.loads(item["payload"])["widgetId"]: item["status"]
        for item in store.items(TABLE)
    }


@pytest.mark.asyncio
async def test_publishes_only_entries_of_the_given_correlation_id(
    store: InMemoryTransactionalStore,
    bus: InMemoryEventBus,
    recording_sleep: RecordingSleep,
) -> None:
    mine = await _commit_events(store, "w-1", "w-2")
    await _commit_events(store, "w-3")

    report = await _publisher(store, bus, recording_sleep).publish(mine.correlation_id)

    assert len(report.published) == 2
    assert report.total == 2
    assert _statuses(store) == {
        "w-1": "PUBLISHED",
        "w-2": "PUBLISHED",
        "w-3": "NOT_PUBLISHED",
    }
    (event, _) = bus.get_published()
    assert event.source == "widget-service"
    assert event.detail_type == "WidgetShipped"


@pytest.mark.asyncio
async def test_nothing_pending_is_a_no_op(
    store: InMemoryTransactionalStore,
    bus: InMemoryEventBus,
    recording_sleep: RecordingSleep,
) -> None:
    report = await _publisher(store, bus, recording_sleep).publish("unknown")

    assert report.total == 0
    assert bus.get_published() == []


@pytest.mark.asyncio
async def test_second_pass_finds_nothing_to_publish(
    store: InMemoryTransactionalStore,
    bus: InMemoryEventBus,
    recording_sleep: RecordingSleep,
) -> None:
    uow = await _commit_events(store, "w-1")
    publisher = _publisher(store, bus, recording_sleep)

    await publisher.publish(uow.correlation_id)
    again = await publisher.publish(uow.correlation_id)

    assert again.total == 0
    bus.assert_published("WidgetShipped", count=1)


@pytest.mark.asyncio
async def test_transient_failures_are_retried_with_backoff(
    store: InMemoryTransactionalStore,
    recording_sleep: RecordingSleep,
) -> None:
    bus = FlakyBus(failures=3)
    uow = await _commit_events(store, "w-1")

    report = await _publisher(store, bus, recording_sleep).publish(uow.correlation_id)

    assert report.published == [item["id"] for item in store.items(TABLE)]
    assert bus.attempts["w-1"] == 4
    assert recording_sleep.delays == [1.0, 2.0, 4.0]
    assert _statuses(store) == {"w-1": "PUBLISHED"}


@pytest.mark.asyncio
async def test_entry_fails_after_five_attempts(
    store: InMemoryTransactionalStore,
    recording_sleep: RecordingSleep,
) -> None:
    bus = FlakyBus(failures=100)
    uow = await _commit_events(store, "w-1")

    report = await _publisher(store, bus, recording_sleep).publish(uow.correlation_id)

    assert len(report.failed) == 1
    assert bus.attempts["w-1"] == 5
    assert recording_sleep.delays == [1.0, 2.0, 4.0, 5.0]
    assert _statuses(store) == {"w-1": "FAILED"}


@pytest.mark.asyncio
async def test_failed_entry_is_not_retried_by_a_later_pass(
    store: InMemoryTransactionalStore,
    recording_sleep: RecordingSleep,
) -> None:
    bus = FlakyBus(failures=100)
    uow = await _commit_events(store, "w-1")
    publisher = _publisher(store, bus, recording_sleep)

    await publisher.publish(uow.correlation_id)
    again = await publisher.publish(uow.correlation_id)

    assert again.total == 0
    assert bus.attempts["w-1"] == 5


@pytest.mark.asyncio
async def test_one_failing_entry_does_not_affect_the_others(
    store: InMemoryTransactionalStore,
    recording_sleep: RecordingSleep,
) -> None:
    bus = FlakyBus(failures=100, widget_ids={"w-2"})
    uow = await _commit_events(store, "w-1", "w-2", "w-3")

    report = await _publisher(store, bus, recording_sleep, max_concurrency=2).publish(
        uow.correlation_id
    )

    assert (len(report.published), len(report.failed)) == (2, 1)
    assert _statuses(store) == {
        "w-1": "PUBLISHED",
        "w-2": "FAILED",
        "w-3": "PUBLISHED",
    }


@pytest.mark.asyncio
async def test_entry_claimed_elsewhere_is_skipped(
    store: InMemoryTransactionalStore,
    bus: InMemoryEventBus,
    recording_sleep: RecordingSleep,
) -> None:
    uow = await _commit_events(store, "w-1")
    (item,) = store.items(TABLE)

    class ClaimingStore(InMemoryTransactionalStore):
        """Lets a competing pass claim the entry right after the scan."""

        async def scan(self, table: str, **equals: object) -> list[dict]:
            items = await store.scan(table, **equals)
            await store.transact_write(
                [
                    transition(
                        TABLE,
                        item["id"],
                        OutboxStatus.NOT_PUBLISHED,
                        OutboxStatus.IN_PROGRESS,
                    )
                ]
            )
            return items

        async def transact_write(self, operations):  # type: ignore[no-untyped-def]
            await store.transact_write(operations)

    publisher = OutboxPublisher(
        ClaimingStore(), bus, table=TABLE, source="widget-service"
    )
    report = await publisher.publish(uow.correlation_id)

    assert report.skipped == [item["id"]]
    assert bus.get_published() == []
    assert _statuses(store) == {"w-1": "IN_PROGRESS"}


@pytest.mark.asyncio
async def test_scan_failure_propagates(
    bus: InMemoryEventBus, recording_sleep: RecordingSleep
) -> None:
    class BrokenStore(InMemoryTransactionalStore):
        async def scan(self, table: str, **equals: object) -> list[dict]:
            raise BackendError("scan failed")

    with pytest.raises(BackendError):
        await _publisher(BrokenStore(), bus, recording_sleep).publish("cid")


def test_max_concurrency_must_be_positive(
    store: InMemoryTransactionalStore, bus: InMemoryEventBus
) -> None:
    with pytest.raises(ValueError, match="max_concurrency"):
        OutboxPublisher(store, bus, table=TABLE, source="s", max_concurrency=0)


class StatusWriteFailingStore(InMemoryTransactionalStore):
    """Fails the first ``failures`` writes that mark an entry PUBLISHED."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    async def transact_write(self, operations):  # type: ignore[no-untyped-def]
        marks_published = any(
            isinstance(op, Update)
            and FieldChange("status", OutboxStatus.PUBLISHED.value) in op.changes
            for op in operations
        )
        if marks_published and self.failures > 0:
            self.failures -= 1
            raise BackendError("write timed out")
        await super().transact_write(operations)


@pytest.mark.asyncio
async def test_transient_status_write_failure_is_retried(
    bus: InMemoryEventBus, recording_sleep: RecordingSleep
) -> None:
    store = StatusWriteFailingStore(failures=2)
    uow = await _commit_events(store, "w-1")

    report = await _publisher(store, bus, recording_sleep).publish(uow.correlation_id)

    assert len(report.published) == 1
    assert report.failed == []
    bus.assert_published("WidgetShipped", count=1)
    assert _statuses(store) == {"w-1": "PUBLISHED"}


@pytest.mark.asyncio
async def test_delivered_entry_with_unwritable_status_is_not_reported_failed(
    bus: InMemoryEventBus, recording_sleep: RecordingSleep
) -> None:
    store = StatusWriteFailingStore(failures=100)
    uow = await _commit_events(store, "w-1")

    report = await _publisher(store, bus, recording_sleep).publish(uow.correlation_id)

    (entry_id,) = [item["id"] for item in store.items(TABLE)]
    assert report.unrecorded == [entry_id]
    assert report.failed == []
    assert report.published == []
    assert report.total == 1
    bus.assert_published("WidgetShipped", count=1)
    assert _statuses(store) == {"w-1": "IN_PROGRESS"}


@pytest.mark.asyncio
async def test_conflicting_status_write_is_not_retried(
    bus: InMemoryEventBus, recording_sleep: RecordingSleep
) -> None:
    class ReapedMeanwhileStore(InMemoryTransactionalStore):
        """Another actor fails the entry while it is being delivered."""

        async def transact_write(self, operations):  # type: ignore[no-untyped-def]
            (op,) = operations
            if isinstance(op, Update) and op.changes[0].value == "PUBLISHED":
                await super().transact_write(
                    [
                        transition(
                            TABLE,
                            op.key,
                            OutboxStatus.IN_PROGRESS,
                            OutboxStatus.FAILED,
                        )
                    ]
                )
            await super().transact_write(operations)

    store = ReapedMeanwhileStore()
    uow = await _commit_events(store, "w-1")

    report = await _publisher(store, bus, recording_sleep).publish(uow.correlation_id)

    assert len(report.unrecorded) == 1
    assert recording_sleep.delays == []
    assert _statuses(store) == {"w-1": "FAILED"}
