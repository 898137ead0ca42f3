from .bus import EventBridgeEventBus
from .connection import EventBridgeConnectionManager

__all__ = [
    "EventBridgeConnectionManager",
    "EventBridgeEventBus",
]
