# app/services/order_event_service.py

from datetime import datetime
from typing import Dict, Optional, Union
from uuid import uuid4
from sqlmodel import Session, select

from app.constants.order_status import ORDER_EVENT_TYPES, TIMELINE_STATUSES, OrderStatus
from app.models.order import Order
from app.models.order_event import OrderEvent


def log_order_event(
    session: Session,
    order_id: int,
    event_type: Union[OrderStatus, str],
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
    created_at: Optional[datetime] = None,
):
    """
    Append-only event log for order timeline.

    ``event_type`` is the status the order entered, or ``rider_assigned``.
    """
    event_type = getattr(event_type, "value", event_type)
    if event_type not in ORDER_EVENT_TYPES:
        raise ValueError(f"Unknown order event type: {event_type}")

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=event_type,
        label=label,
        meta=meta,
        created_by=created_by,
        created_at=created_at or datetime.utcnow(),
    )

    session.add(event)
    return event


def build_status_timeline(session: Session, order: Order) -> Dict[str, Optional[datetime]]:
    """First time the order entered each status; None for statuses not reached."""
    events = session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order.id)
        .order_by(OrderEvent.created_at.asc())
    ).all()

    timeline: Dict[str, Optional[datetime]] = {status.value: None for status in TIMELINE_STATUSES}

    for event in events:
        if event.event_type in timeline and timeline[event.event_type] is None:
            timeline[event.event_type] = event.created_at

    # rows written before the event log existed
    if timeline[OrderStatus.pending.value] is None:
        timeline[OrderStatus.pending.value] = order.created_at
    if order.delivered_at and timeline[OrderStatus.delivered.value] is None:
        timeline[OrderStatus.delivered.value] = order.delivered_at
    if order.cancelled_at and timeline[OrderStatus.cancelled.value] is None:
        timeline[OrderStatus.cancelled.value] = order.cancelled_at

    return timeline
