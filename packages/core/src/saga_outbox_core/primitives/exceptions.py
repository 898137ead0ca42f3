"""Domain and infrastructure exceptions for saga-outbox-core."""

from __future__ import annotations


class SagaOutboxError(Exception):
    """Root exception for the entire saga-outbox toolkit."""


class DomainError(SagaOutboxError):
    """Base class for all domain-related errors."""


class InvariantViolationError(DomainError):
    """Raised when a domain invariant is violated."""


class ImmutableEntityError(DomainError):
    """Raised when an update is requested for an entity kind with no updatable fields."""

    def __init__(self, entity_type: str, entity_id: object) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id={entity_id!r} is immutable")


class ConcurrencyError(SagaOutboxError):
    """Base class for all concurrency-related conflicts."""


class ConflictError(ConcurrencyError):
    """Raised when a stored value no longer matches the value a writer observed.

    Covers both version preconditions on entity updates and status
    preconditions on outbox lifecycle transitions.
    """


class InfrastructureError(SagaOutboxError):
    """Base class for all infrastructure-related errors."""


class PersistenceError(InfrastructureError):
    """Base class for all persistence-related errors."""


class CommitError(PersistenceError):
    """Raised when a batch of writes could not be applied.

    The store guarantees that no item of the batch took effect.
    """


class TransactionConflictError(CommitError, ConflictError):
    """Raised when a precondition of one item in a batch failed.

    Usage: store adapters raise this from ``transact_write`` when an
    insert hits an existing item or an update's condition does not hold.
    """

    def __init__(self, message: str, operation_index: int | None = None) -> None:
        self.operation_index = operation_index
        super().__init__(message)


class BackendError(CommitError):
    """Raised when the backing store rejected or failed a request."""


class UnitOfWorkError(PersistenceError):
    """Raised when a Unit of Work is used outside its single-use lifecycle."""


class MessagingError(InfrastructureError):
    """Base class for all messaging-related infrastructure errors."""


class DeliveryError(MessagingError):
    """Raised when the event bus rejected a single event."""
