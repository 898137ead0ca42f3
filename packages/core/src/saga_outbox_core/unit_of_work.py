"""UnitOfWork — collects conditional writes and commits them as one transaction."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Any

from .correlation import generate_correlation_id
from .primitives.exceptions import BackendError, CommitError, UnitOfWorkError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .ports.store import ITransactionalStore, WriteOperation

logger = logging.getLogger("saga_outbox.uow")


class UnitOfWork:
    """
    Accumulates write descriptors for one workflow invocation.

    Nothing reaches the store until :meth:`commit`, which submits the whole
    batch through ``ITransactionalStore.transact_write``: either every
    operation is applied or none is.  The instance is single-use; once
    committed or rolled back it refuses further work.

    Every unit of work mints a ``correlation_id``.  The outbox stamps it on
    each entry it writes so the publisher can later select exactly this
    invocation's events.

    Example:
        ```python
        async with UnitOfWork(store) as uow:
            orders = Repository("orders", Order, uow, store)
            orders.add(order)
        # committed here; rolled back if the block raised
        await publisher.publish(uow.correlation_id)
        ```
    """

    def __init__(
        self,
        store: ITransactionalStore,
        *,
        correlation_id: str | None = None,
    ) -> None:
        self._store = store
        self._operations: list[WriteOperation] = []
        self._closed = False
        self._on_commit_hooks: deque[Callable[[], Awaitable[Any]]] = deque()
        self.correlation_id = correlation_id or generate_correlation_id()

    @property
    def pending(self) -> tuple[WriteOperation, ...]:
        """Operations registered so far and not yet committed."""
        return tuple(self._operations)

    @property
    def closed(self) -> bool:
        return self._closed

    def register(self, *operations: WriteOperation) -> None:
        """Append *operations* to the batch.  No I/O happens here."""
        self._ensure_open()
        self._operations.extend(operations)
        for operation in operations:
            logger.debug(
                "Operation added to unit of work %s: %r",
                self.correlation_id,
                operation,
            )

    def on_commit(self, callback: Callable[[], Awaitable[Any]]) -> None:
        """Register an async callback to run after a successful commit.

        Hooks are dropped on rollback or a failed commit.
        """
        self._ensure_open()
        self._on_commit_hooks.append(callback)

    async def commit(self) -> None:
        """Submit the batch atomically.

        Raises:
            TransactionConflictError: A precondition failed; nothing was written.
            BackendError: The store failed; nothing was written.
            UnitOfWorkError: The unit of work was already closed.
        """
        self._ensure_open()
        operations = list(self._operations)
        self._operations.clear()
        self._closed = True

        if not operations:
            logger.debug("Unit of work %s has nothing to commit", self.correlation_id)
            await self._trigger_commit_hooks()
            return

        try:
            await self._store.transact_write(operations)
        except CommitError:
            self._on_commit_hooks.clear()
            logger.error(
                "Error committing unit of work %s (%d operations)",
                self.correlation_id,
                len(operations),
                exc_info=True,
            )
            raise
        except Exception as exc:  # noqa: BLE001
            # Adapters should raise CommitError; anything else is a backend fault
            self._on_commit_hooks.clear()
            logger.error(
                "Error committing unit of work %s: %s",
                self.correlation_id,
                exc,
                exc_info=True,
            )
            raise BackendError(f"Failed to commit unit of work: {exc}") from exc

        logger.info(
            "Unit of work %s committed %d operations",
            self.correlation_id,
            len(operations),
        )
        await self._trigger_commit_hooks()

    async def rollback(self) -> None:
        """Discard the pending batch and close the unit of work."""
        if self._closed:
            return
        discarded = len(self._operations)
        self._operations.clear()
        self._on_commit_hooks.clear()
        self._closed = True
        logger.debug(
            "Unit of work %s rolled back, %d operations discarded",
            self.correlation_id,
            discarded,
        )

    async def _trigger_commit_hooks(self) -> None:
        while self._on_commit_hooks:
            callback = self._on_commit_hooks.popleft()
            try:
                await callback()
            except Exception as exc:  # noqa: BLE001
                logger.error("Error in on_commit hook: %s", exc, exc_info=True)

    def _ensure_open(self) -> None:
        if self._closed:
            raise UnitOfWorkError(
                f"Unit of work {self.correlation_id} is closed and cannot be reused"
            )

    async def __aenter__(self) -> UnitOfWork:
        self._ensure_open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Commit on a clean exit (unless already committed), otherwise roll back."""
        if exc_type is None:
            if not self._closed:
                await self.commit()
        else:
            await self.rollback()
