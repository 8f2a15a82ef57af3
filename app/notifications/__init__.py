from .events import DomainEvent, OrderEventType
from .dispatcher import (
    notify_order_placed,
    notify_order_status_change,
    notify_rider_assigned,
)

__all__ = [
    "DomainEvent",
    "OrderEventType",
    "notify_order_placed",
    "notify_order_status_change",
    "notify_rider_assigned",
]
