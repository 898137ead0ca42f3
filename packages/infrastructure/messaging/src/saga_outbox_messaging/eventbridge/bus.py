"""EventBridgeEventBus — IEventBus backed by Amazon EventBridge ``PutEvents``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from saga_outbox_core.ports.messaging import BusEvent, IEventBus
from saga_outbox_core.primitives.exceptions import DeliveryError

from ..exceptions import EventRejectedError, MessagingConnectionError

if TYPE_CHECKING:
    from .connection import EventBridgeConnectionManager

logger = logging.getLogger("saga_outbox.messaging")


class EventBridgeEventBus(IEventBus):
    """EventBridge adapter implementing IEventBus.

    Sends one entry per call.  ``PutEvents`` can succeed at the request
    level and still reject individual entries, so ``FailedEntryCount`` is
    checked and turned into :class:`EventRejectedError`.
    """

    def __init__(
        self,
        connection: EventBridgeConnectionManager,
        *,
        event_bus_name: str = "default",
    ) -> None:
        """Configure publisher.

        Args:
            connection: Shared connection manager.
            event_bus_name: Name or ARN of the target bus.
        """
        self._connection = connection
        self._event_bus_name = event_bus_name

    def _entry(self, event: BusEvent) -> dict[str, Any]:
        return {
            "EventBusName": self._event_bus_name,
            "Source": event.source,
            "DetailType": event.detail_type,
            "Detail": event.detail,
        }

    async def publish(self, event: BusEvent) -> None:
        entry = self._entry(event)
        logger.debug("Publishing event %s to %s", event.detail_type, self._event_bus_name)
        try:
            client = await self._connection.get_client()
            response = await client.put_events(Entries=[entry])
        except MessagingConnectionError as e:
            raise DeliveryError(str(e)) from e
        except Exception as e:
            raise DeliveryError(f"PutEvents failed: {e}") from e

        if response.get("FailedEntryCount", 0):
            failed = (response.get("Entries") or [{}])[0]
            raise EventRejectedError(
                f"EventBridge rejected {event.detail_type}: "
                f"{failed.get('ErrorMessage', 'unknown error')}",
                error_code=failed.get("ErrorCode"),
            )

    async def health_check(self) -> bool:
        """Return True if the event bus is reachable."""
        return await self._connection.health_check(self._event_bus_name)
