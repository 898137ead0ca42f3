"""saga-outbox-core — Unit of Work, repositories and the transactional outbox.

Zero infrastructure dependencies; pydantic for the entity and message models.
"""

from __future__ import annotations

# ── Adapters ────────────────────────────────────────────────────
from .adapters.memory import InMemoryEventBus, InMemoryTransactionalStore
from .correlation import (
    CorrelationIdFilter,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)

# ── Domain ───────────────────────────────────────────────────────
from .domain import Entity, IntegrationEvent

# ── Outbox ───────────────────────────────────────────────────────
from .outbox import (
    IntegrationEventOutbox,
    OutboxPublisher,
    OutboxReaper,
    PublishOutcome,
    PublishReport,
)

# ── Ports ────────────────────────────────────────────────────────
from .ports import (
    BusEvent,
    FieldChange,
    FieldEquals,
    IEventBus,
    ITransactionalStore,
    ItemAbsent,
    OutboxEntry,
    OutboxStatus,
    Put,
    Update,
    WriteOperation,
)

# ── Primitives ──────────────────────────────────────────────────
from .primitives import (
    BackendError,
    CommitError,
    ConcurrencyError,
    ConflictError,
    DeliveryError,
    DomainError,
    IIDGenerator,
    ImmutableEntityError,
    InfrastructureError,
    InvariantViolationError,
    MessagingError,
    PersistenceError,
    SagaOutboxError,
    TransactionConflictError,
    UnitOfWorkError,
    UUID4Generator,
)
from .repository import Repository
from .retry import RetryPolicy
from .unit_of_work import UnitOfWork

__all__: list[str] = [
    # Domain
    "Entity",
    "IntegrationEvent",
    # Unit of Work / Repository
    "Repository",
    "UnitOfWork",
    "CorrelationIdFilter",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    # Outbox
    "IntegrationEventOutbox",
    "OutboxPublisher",
    "OutboxReaper",
    "PublishOutcome",
    "PublishReport",
    "RetryPolicy",
    # Ports
    "BusEvent",
    "FieldChange",
    "FieldEquals",
    "IEventBus",
    "ITransactionalStore",
    "ItemAbsent",
    "OutboxEntry",
    "OutboxStatus",
    "Put",
    "Update",
    "WriteOperation",
    # Primitives
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
    # Adapters
    "InMemoryEventBus",
    "InMemoryTransactionalStore",
]
