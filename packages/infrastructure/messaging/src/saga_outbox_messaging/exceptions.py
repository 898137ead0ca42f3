"""Messaging-specific exceptions for saga-outbox-messaging."""

from __future__ import annotations

from saga_outbox_core.primitives.exceptions import DeliveryError, MessagingError


class MessagingConnectionError(MessagingError):
    """Raised when connectivity to the event bus fails."""


class EventRejectedError(DeliveryError):
    """Raised when the bus accepted the request but rejected the event."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
    ) -> None:
        self.error_code = error_code
        super().__init__(message)


__all__: list[str] = [
    "DeliveryError",
    "EventRejectedError",
    "MessagingConnectionError",
]
