"""Declarative base, column types and the outbox table."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class IsoDateTime(TypeDecorator[str]):
    """
    Timestamp column exchanged as an ISO-8601 string.

    Store items carry timestamps as strings; the column keeps a real
    ``DateTime`` so the database can index and compare it.  Naive values
    coming back (SQLite) are read as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if isinstance(value, str):
            # fromisoformat only accepts a trailing "Z" from 3.11 on
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value

    def process_result_value(self, value: Any, dialect: Any) -> str | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


class Base(DeclarativeBase):
    """Declarative base for every table the transactional store writes to."""


class VersionedItemMixin:
    """String primary key plus the optimistic-concurrency version column."""

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class OutboxEntryModel(Base):
    """
    Model for the transactional outbox.
    One row per integration event waiting to be (or already) published.
    """

    __tablename__ = "integration_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    payload: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), index=True)
    correlation_id: Mapped[str] = mapped_column(String(64), index=True)
    created_at: Mapped[str] = mapped_column(IsoDateTime)
    updated_at: Mapped[str] = mapped_column(IsoDateTime)

    __table_args__ = (
        Index("ix_integration_events_pending", "status", "correlation_id"),
    )
