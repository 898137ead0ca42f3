from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class BusEvent(BaseModel):
    """One event as handed to the bus: source tag, type tag and opaque detail."""

    model_config = ConfigDict(frozen=True)

    source: str
    detail_type: str
    detail: str


@runtime_checkable
class IEventBus(Protocol):
    """
    Port for publishing integration events (EventBridge, in-memory, …).

    The bus gives no ordering, no deduplication and no confirmation
    beyond accepting or rejecting a single event.
    """

    async def publish(self, event: BusEvent) -> None:
        """
        Publish *event*.

        Raises:
            DeliveryError: The bus rejected the event.
        """
        ...
