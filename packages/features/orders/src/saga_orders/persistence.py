"""SQLAlchemy tables for orders and transactions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from saga_outbox_persistence_sqlalchemy.models import (
    Base,
    OutboxEntryModel,
    VersionedItemMixin,
)

if TYPE_CHECKING:
    from .settings import OrderSagaSettings


class OrderModel(VersionedItemMixin, Base):
    __tablename__ = "orders"

    amount: Mapped[float] = mapped_column(Float)
    customer_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(16))


class TransactionModel(VersionedItemMixin, Base):
    __tablename__ = "transactions"

    amount: Mapped[float] = mapped_column(Float)
    customer_id: Mapped[str] = mapped_column(String(64), index=True)
    order_id: Mapped[str] = mapped_column(String(64), index=True)
    kind: Mapped[str] = mapped_column(String(16))


def table_models(settings: OrderSagaSettings) -> dict[str, type[Base]]:
    """Map the configured logical table names to their models."""
    return {
        settings.orders_table_name: OrderModel,
        settings.transactions_table_name: TransactionModel,
        settings.integration_events_table_name: OutboxEntryModel,
    }
