"""Integration events exchanged between the saga steps."""

from __future__ import annotations

from saga_outbox_core.domain.events import IntegrationEvent


class OrderPlaced(IntegrationEvent):
    amount: float
    order_id: str
    customer_id: str


class ReservationOutcome(IntegrationEvent):
    """Emitted by the credit step whether or not credit was reserved."""

    is_credit_reserved: bool
    order_id: str
