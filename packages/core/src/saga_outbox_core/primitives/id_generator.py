"""Identifier generation for entities and outbox entries."""

from __future__ import annotations

import uuid
from typing import Protocol


class IIDGenerator(Protocol):
    """Source of string keys.

    Handlers and the outbox take one by injection; tests pass a
    deterministic sequence so stored items can be asserted by key.
    """

    def next_id(self) -> str: ...


class UUID4Generator(IIDGenerator):
    """Random UUID4 keys, the production default."""

    def next_id(self) -> str:
        return str(uuid.uuid4())
