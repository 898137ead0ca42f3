"""Domain primitives: versioned entities and integration events."""

from __future__ import annotations

from .entity import Entity
from .events import IntegrationEvent

__all__: list[str] = [
    "Entity",
    "IntegrationEvent",
]
