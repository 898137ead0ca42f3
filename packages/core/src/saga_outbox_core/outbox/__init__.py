from .lifecycle import can_transition, transition
from .publisher import OutboxPublisher, PublishOutcome, PublishReport
from .reaper import OutboxReaper
from .writer import IntegrationEventOutbox

__all__ = [
    "IntegrationEventOutbox",
    "OutboxPublisher",
    "OutboxReaper",
    "PublishOutcome",
    "PublishReport",
    "can_transition",
    "transition",
]
