"""Credit decision port and the random stand-in used until a real service exists."""

from __future__ import annotations

import random
from typing import Protocol, runtime_checkable


@runtime_checkable
class ICreditDecisionService(Protocol):
    """Decides whether *amount* can be reserved against a customer's credit."""

    async def reserve(self, customer_id: str, amount: float) -> bool: ...


class RandomCreditDecisionService(ICreditDecisionService):
    """Approves a reservation with probability ``approval_rate``."""

    def __init__(
        self,
        approval_rate: float = 0.5,
        *,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= approval_rate <= 1.0:
            raise ValueError("approval_rate must be within [0, 1]")
        self._approval_rate = approval_rate
        self._rng = rng or random.Random()  # noqa: S311

    async def reserve(self, customer_id: str, amount: float) -> bool:
        return self._rng.random() < self._approval_rate
