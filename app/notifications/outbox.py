import logging
from collections import deque
from typing import Callable, Deque, List

from sqlmodel import Session

from app.constants.order_status import OrderStatus
from app.database import new_session
from app.models.order import Order
from app.notifications.dispatcher import (
    notify_order_placed,
    notify_order_status_change,
    notify_rider_assigned,
)
from app.notifications.events import DomainEvent, OrderEventType
from app.services.rider_service import auto_assign_rider, drain_backlog

logger = logging.getLogger(__name__)


class Outbox:
    """
    Queue of committed order events.

    Services ``emit`` after their commit; ``flush`` runs later (a FastAPI
    background task) with its own session. Anything that goes wrong while
    handling an event is logged and never reaches the request that caused it.
    """

    def __init__(self, session_factory: Callable[[], Session] = new_session):
        self.session_factory = session_factory
        self._events: Deque[DomainEvent] = deque()

    def emit(self, event: DomainEvent) -> None:
        self._events.append(event)

    @property
    def pending(self) -> List[DomainEvent]:
        return list(self._events)

    def flush(self) -> int:
        handled = 0

        # handlers may emit follow-up events (rider assigned); they run here too
        while self._events:
            event = self._events.popleft()
            try:
                with self.session_factory() as session:
                    handle_order_event(session, event, self)
            except Exception:
                logger.exception(
                    "Handling %s for order %s failed", event.type.value, event.order_id
                )
            handled += 1

        return handled


def get_outbox() -> Outbox:
    return Outbox()


def _best_effort(label: str, order_id: int, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except Exception:
        logger.exception("%s failed for order %s", label, order_id)
        return None


def _dispatch_ready_order(session: Session, order: Order, outbox: Outbox) -> None:
    result = auto_assign_rider(session, order.id)

    if result.success and not result.already_assigned:
        outbox.emit(DomainEvent.rider_assigned(result.order_id, result.rider_id))
    elif not result.success:
        logger.warning(
            "Could not auto-assign rider to order #%s: %s", result.order_number, result.message
        )


def _drain_after_delivery(session: Session, outbox: Outbox) -> None:
    for result in drain_backlog(session, max_assignments=1):
        if result.success and not result.already_assigned:
            logger.info("Auto-assigned pending order #%s after a delivery", result.order_number)
            outbox.emit(DomainEvent.rider_assigned(result.order_id, result.rider_id))


def handle_order_event(session: Session, event: DomainEvent, outbox: Outbox) -> None:
    order = session.get(Order, event.order_id)
    if not order:
        logger.warning("Order %s vanished before %s was handled", event.order_id, event.type.value)
        return

    if event.type == OrderEventType.ORDER_PLACED:
        notify_order_placed(session, order)
        return

    if event.type == OrderEventType.RIDER_ASSIGNED:
        notify_rider_assigned(session, order)
        return

    # STATUS_CHANGED: dispatch first so the ready fanout can include the rider
    if event.new_status == OrderStatus.ready and order.rider_id is None:
        _best_effort("Rider dispatch", event.order_id, _dispatch_ready_order, session, order, outbox)
        order = session.get(Order, event.order_id)

    _best_effort(
        "Status notification",
        event.order_id,
        notify_order_status_change,
        session,
        order,
        event.new_status,
        event.old_status,
    )

    if event.new_status == OrderStatus.delivered:
        _best_effort("Backlog drain", event.order_id, _drain_after_delivery, session, outbox)
