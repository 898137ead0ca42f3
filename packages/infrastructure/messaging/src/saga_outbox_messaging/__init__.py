"""saga-outbox-messaging — event bus adapters for the outbox publisher."""

from __future__ import annotations

from .eventbridge import EventBridgeConnectionManager, EventBridgeEventBus
from .exceptions import EventRejectedError, MessagingConnectionError

__all__: list[str] = [
    "EventBridgeConnectionManager",
    "EventBridgeEventBus",
    "EventRejectedError",
    "MessagingConnectionError",
]
