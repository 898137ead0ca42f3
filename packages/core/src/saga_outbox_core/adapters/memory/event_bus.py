"""InMemoryEventBus — IEventBus with subscriptions and assertion helpers for tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...ports.messaging import BusEvent, IEventBus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    EventHandler = Callable[[BusEvent], Awaitable[object]]


class InMemoryEventBus(IEventBus):
    """Shared bus: publish records the event and awaits every handler
    subscribed to its ``detail_type``.

    A handler that raises makes ``publish`` raise, which the outbox
    publisher treats as a failed delivery attempt.
    """

    def __init__(self) -> None:
        self._events: list[BusEvent] = []
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, detail_type: str, handler: EventHandler) -> None:
        """Register a handler for the detail type."""
        self._handlers.setdefault(detail_type, []).append(handler)

    async def publish(self, event: BusEvent) -> None:
        self._events.append(event)
        for handler in self._handlers.get(event.detail_type, []):
            await handler(event)

    def get_published(self, detail_type: str | None = None) -> list[BusEvent]:
        """Return published events in order, optionally of one detail type."""
        if detail_type is None:
            return list(self._events)
        return [e for e in self._events if e.detail_type == detail_type]

    def assert_published(self, detail_type: str, count: int = 1) -> None:
        """Assert that exactly `count` events of this detail type were published."""
        matching = self.get_published(detail_type)
        assert len(matching) == count, (
            f"Expected {count} event(s) with detail_type={detail_type!r}, "
            f"got {len(matching)}. Published: "
            f"{[e.detail_type for e in self._events]}"
        )

    def clear(self) -> None:
        """Clear published events and handlers (for test teardown)."""
        self._events.clear()
        self._handlers.clear()
