"""Common utility functions and helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current time; every persisted timestamp goes through here."""
    return datetime.now(timezone.utc)
