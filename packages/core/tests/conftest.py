from __future__ import annotations

import pytest

from saga_outbox_core import InMemoryEventBus, InMemoryTransactionalStore


class RecordingSleep:
    """Stands in for ``asyncio.sleep`` and records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture()
def store() -> InMemoryTransactionalStore:
    return InMemoryTransactionalStore()


@pytest.fixture()
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
