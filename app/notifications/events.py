from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.constants.order_status import OrderStatus


class OrderEventType(str, Enum):
    ORDER_PLACED = "order_placed"
    STATUS_CHANGED = "status_changed"
    RIDER_ASSIGNED = "rider_assigned"


@dataclass(frozen=True)
class DomainEvent:
    """Something that happened to an order and was already committed."""

    type: OrderEventType
    order_id: int
    new_status: Optional[OrderStatus] = None
    old_status: Optional[OrderStatus] = None
    rider_id: Optional[int] = None

    @classmethod
    def order_placed(cls, order_id: int) -> "DomainEvent":
        return cls(OrderEventType.ORDER_PLACED, order_id, new_status=OrderStatus.pending)

    @classmethod
    def status_changed(cls, order_id: int, old_status, new_status) -> "DomainEvent":
        return cls(
            OrderEventType.STATUS_CHANGED,
            order_id,
            new_status=OrderStatus(new_status),
            old_status=OrderStatus(old_status),
        )

    @classmethod
    def rider_assigned(cls, order_id: int, rider_id: int) -> "DomainEvent":
        return cls(OrderEventType.RIDER_ASSIGNED, order_id, rider_id=rider_id)
