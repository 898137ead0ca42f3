"""Outbox entry model shared by the writer, the publisher and the reaper."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..utils import utc_now


class OutboxStatus(str, Enum):
    """Lifecycle of an outbox entry.

    NOT_PUBLISHED → IN_PROGRESS → PUBLISHED | FAILED.  FAILED is terminal.
    """

    NOT_PUBLISHED = "NOT_PUBLISHED"
    IN_PROGRESS = "IN_PROGRESS"
    PUBLISHED = "PUBLISHED"
    FAILED = "FAILED"


class OutboxEntry(BaseModel):
    """An integration event waiting in the transactional outbox."""

    id: str
    name: str
    payload: str
    status: OutboxStatus = OutboxStatus.NOT_PUBLISHED
    correlation_id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_item(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> OutboxEntry:
        return cls.model_validate(item)
