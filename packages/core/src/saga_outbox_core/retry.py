"""RetryPolicy — bounded exponential backoff for event delivery."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = logging.getLogger("saga_outbox.retry")


class RetryPolicy:
    """Configurable retry with exponential backoff and optional jitter.

    The delay after failed attempt *i* (1-based) is
    ``min(base_delay * 2 ** (i - 1), max_delay)``; with the defaults an
    operation is tried five times with waits of 1, 2, 4 and 5 seconds.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 5.0,
        jitter: bool = False,
        retry_on: tuple[type[Exception], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Configure retry behavior.

        Args:
            max_attempts: Maximum number of attempts (including the first).
            base_delay: Delay in seconds after the first failed attempt.
            max_delay: Cap on delay in seconds.
            jitter: If True, multiply delays by a random factor in [0.5, 1.5].
            retry_on: Exception types that trigger another attempt.
            sleep: Coroutine used to wait between attempts (tests pass a recorder).
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0 or max_delay < 0:
            raise ValueError("base_delay and max_delay must be >= 0")
        if base_delay > max_delay:
            raise ValueError("base_delay must be <= max_delay")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.retry_on = retry_on
        self._sleep = sleep or asyncio.sleep

    def replace(self, **changes: Any) -> RetryPolicy:
        """Return a copy with some settings changed, sharing the sleep function."""
        settings: dict[str, Any] = {
            "max_attempts": self.max_attempts,
            "base_delay": self.base_delay,
            "max_delay": self.max_delay,
            "jitter": self.jitter,
            "retry_on": self.retry_on,
            "sleep": self._sleep,
        }
        settings.update(changes)
        return RetryPolicy(**settings)

    def should_retry(self, attempt: int) -> bool:
        """Return True if another attempt is allowed (attempt is 1-based)."""
        return 1 <= attempt < self.max_attempts

    def delay_for_attempt(self, attempt: int) -> float:
        """Return the delay in seconds after the given 1-based failed attempt."""
        if attempt < 1:
            return 0.0
        delay = min(
            self.base_delay * (2 ** (attempt - 1)),
            self.max_delay,
        )
        if self.jitter:
            delay = delay * (0.5 + random.random())  # noqa: S311
        return float(max(0.0, delay))

    async def run(self, func: Callable[[], Awaitable[T]]) -> T:
        """Await ``func()`` until it succeeds or attempts run out.

        The last error is re-raised once ``max_attempts`` is exhausted.
        """
        attempt = 1
        while True:
            try:
                return await func()
            except self.retry_on as exc:
                if not self.should_retry(attempt):
                    raise
                delay = self.delay_for_attempt(attempt)
                logger.warning(
                    "Attempt %d/%d failed: %s (retrying in %.2fs)",
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                if delay > 0:
                    await self._sleep(delay)
                attempt += 1
