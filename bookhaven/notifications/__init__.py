from .events import CartEvent, OrderEvent
from .dispatcher import dispatch_event, popup

__all__ = [
    "CartEvent",
    "OrderEvent",
    "dispatch_event",
    "popup",
]
