"""Outbox status transitions, compiled to conditional single-item updates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..ports.outbox import OutboxStatus
from ..ports.store import FieldChange, FieldEquals, Update
from ..primitives.exceptions import InvariantViolationError
from ..utils import utc_now

if TYPE_CHECKING:
    from datetime import datetime

_ALLOWED: dict[OutboxStatus, frozenset[OutboxStatus]] = {
    OutboxStatus.NOT_PUBLISHED: frozenset({OutboxStatus.IN_PROGRESS}),
    OutboxStatus.IN_PROGRESS: frozenset(
        {OutboxStatus.PUBLISHED, OutboxStatus.FAILED}
    ),
    OutboxStatus.PUBLISHED: frozenset(),
    OutboxStatus.FAILED: frozenset(),
}


def can_transition(current: OutboxStatus, target: OutboxStatus) -> bool:
    return target in _ALLOWED[current]


def transition(
    table: str,
    entry_id: str,
    current: OutboxStatus,
    target: OutboxStatus,
    *,
    at: datetime | None = None,
) -> Update:
    """Build the update moving *entry_id* from *current* to *target*.

    The update is guarded on the stored status still being *current*, so a
    concurrent pass that moved the entry first makes it fail with a conflict.

    Raises:
        InvariantViolationError: *target* is not reachable from *current*.
    """
    if not can_transition(current, target):
        raise InvariantViolationError(
            f"Outbox entry {entry_id}: illegal transition "
            f"{current.value} -> {target.value}"
        )
    return Update(
        table=table,
        key=entry_id,
        changes=(
            FieldChange("status", target.value),
            FieldChange("updated_at", (at or utc_now()).isoformat()),
        ),
        condition=FieldEquals("status", current.value),
    )
