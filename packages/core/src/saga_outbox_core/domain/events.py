"""Integration events — the announcements recorded in the outbox."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class IntegrationEvent(BaseModel):
    """Base class for events published to other services.

    The event name defaults to the class name; the payload is the model
    dumped with camelCase keys, which is the wire format consumers see.

    Usage::

        class OrderPlaced(IntegrationEvent):
            order_id: str
            amount: float

        OrderPlaced(order_id="o-1", amount=10).payload
        # {"orderId": "o-1", "amount": 10.0}
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    event_name: ClassVar[str | None] = None

    @property
    def name(self) -> str:
        return type(self).event_name or type(self).__name__

    @property
    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
