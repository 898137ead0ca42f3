from __future__ import annotations

import itertools
import logging

import pytest

from saga_outbox_core import (
    InMemoryEventBus,
    InMemoryTransactionalStore,
    RetryPolicy,
)
from saga_orders import OrderSagaApp, OrderSagaSettings, Services


class FixedCredit:
    """Credit decision stub that always answers the same way."""

    def __init__(self, granted: bool) -> None:
        self.granted = granted
        self.calls: list[tuple[str, float]] = []

    async def reserve(self, customer_id: str, amount: float) -> bool:
        self.calls.append((customer_id, amount))
        return self.granted


class SequentialIds:
    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


async def _no_sleep(delay: float) -> None:
    return None


@pytest.fixture()
def settings() -> OrderSagaSettings:
    return OrderSagaSettings(
        orders_table_name="orders",
        transactions_table_name="transactions",
        integration_events_table_name="integration_events",
        integration_events_source="order-saga",
    )


@pytest.fixture()
def store() -> InMemoryTransactionalStore:
    return InMemoryTransactionalStore()


@pytest.fixture()
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture()
def make_app(store, bus, settings):  # type: ignore[no-untyped-def]
    def _make(granted: bool = True, **overrides) -> OrderSagaApp:  # type: ignore[no-untyped-def]
        services = Services(
            store=overrides.pop("store", store),
            bus=overrides.pop("bus", bus),
            credit=FixedCredit(granted),
            settings=settings,
            id_generator=SequentialIds(),
        )
        return OrderSagaApp(services, retry_policy=RetryPolicy(sleep=_no_sleep))

    return _make


@pytest.fixture()
def root_logger():  # type: ignore[no-untyped-def]
    """Restore the root logger's handlers and level after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
