"""Primitives: exceptions, ID generation."""

from __future__ import annotations

from .exceptions import (
    BackendError,
    CommitError,
    ConcurrencyError,
    ConflictError,
    DeliveryError,
    DomainError,
    ImmutableEntityError,
    InfrastructureError,
    InvariantViolationError,
    MessagingError,
    PersistenceError,
    SagaOutboxError,
    TransactionConflictError,
    UnitOfWorkError,
)
from .id_generator import IIDGenerator, UUID4Generator

__all__ = [
    "BackendError",
    "CommitError",
    "ConcurrencyError",
    "ConflictError",
    "DeliveryError",
    "DomainError",
    "IIDGenerator",
    "ImmutableEntityError",
    "InfrastructureError",
    "InvariantViolationError",
    "MessagingError",
    "PersistenceError",
    "SagaOutboxError",
    "TransactionConflictError",
    "UUID4Generator",
    "UnitOfWorkError",
]
