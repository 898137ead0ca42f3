from .messaging import BusEvent, IEventBus
from saga_outbox_core.ports.outbox import OutboxEntry, OutboxStatus
from .store import (
    Condition,
    FieldChange,
    FieldEquals,
    ITransactionalStore,
    ItemAbsent,
    Put,
    Update,
    WriteOperation,
)

__all__ = [
    "BusEvent",
    "Condition",
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
]
