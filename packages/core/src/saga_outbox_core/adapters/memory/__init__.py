from .event_bus import InMemoryEventBus
from .store import InMemoryTransactionalStore

__all__ = [
    "InMemoryEventBus",
    "InMemoryTransactionalStore",
]
