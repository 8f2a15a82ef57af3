# app/services/order_store.py
"""
Persistence helpers for orders.

Every write that changes an existing order goes through a conditional
UPDATE (``update_order_if_status`` / ``update_order_if_unassigned``). The
caller gets ``False`` back when another request changed the row first and
must report a conflict instead of overwriting.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import case, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.constants.order_status import ACTIVE_DELIVERY_STATUSES, OrderStatus
from app.exceptions import InternalError
from app.models.cart import Cart
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_sequence import OrderSequence

logger = logging.getLogger(__name__)

SEQUENCE_RETRIES = 3

_UNSET = object()


def get_order(session: Session, order_id: int) -> Optional[Order]:
    return session.get(Order, order_id)


# ---------- ORDER NUMBERS ----------

def next_order_sequence(session: Session, day: str) -> int:
    """
    Atomically bump and return the counter for ``day`` (YYYYMMDD).

    Runs inside the caller's transaction, so a rolled back placement also
    gives its number back.
    """
    for _ in range(SEQUENCE_RETRIES):
        bumped = session.execute(
            update(OrderSequence)
            .where(OrderSequence.day == day)
            .values(last_value=OrderSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )

        if bumped.rowcount:
            return session.exec(
                select(OrderSequence.last_value).where(OrderSequence.day == day)
            ).one()

        # first order of the day
        try:
            with session.begin_nested():
                session.add(OrderSequence(day=day, last_value=1))
            return 1
        except IntegrityError:
            # another request created the row first; bump it instead
            logger.info("Order sequence for %s created concurrently, retrying", day)

    raise InternalError("Could not allocate an order number")


def format_order_number(day: str, sequence: int) -> str:
    return f"ORD-{day}-{sequence:03d}"


def generate_order_number(session: Session, now: Optional[datetime] = None) -> str:
    day = (now or datetime.utcnow()).strftime("%Y%m%d")
    return format_order_number(day, next_order_sequence(session, day))


# ---------- WRITES ----------

def create_order_transactional(
    session: Session,
    order: Order,
    items: Iterable[OrderItem],
    cart: Optional[Cart] = None,
) -> Order:
    """
    Stage the order, its items and the cart removal in the open transaction.

    Nothing is committed here; the converter commits or rolls back the
    whole unit.
    """
    session.add(order)
    session.flush()  # assigns order.id

    for item in items:
        item.order_id = order.id
        session.add(item)

    if cart is not None:
        session.delete(cart)  # cart items go with it (delete-orphan)

    session.flush()
    return order


def update_order_if_status(
    session: Session,
    order_id: int,
    expected_status: OrderStatus,
    patch: dict,
    *,
    expected_rider_id=_UNSET,
) -> bool:
    statement = update(Order).where(
        Order.id == order_id,
        Order.status == expected_status,
    )

    if expected_rider_id is not _UNSET:
        statement = statement.where(Order.rider_id == expected_rider_id)

    result = session.execute(
        statement.values(**patch).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def update_order_if_unassigned(session: Session, order_id: int, rider_id: int) -> bool:
    result = session.execute(
        update(Order)
        .where(
            Order.id == order_id,
            Order.status == OrderStatus.ready,
            Order.rider_id.is_(None),
        )
        .values(rider_id=rider_id, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


# ---------- QUERIES ----------

def find_orders_by_customer(customer_id: int, status: Optional[OrderStatus] = None):
    query = select(Order).where(Order.customer_id == customer_id)
    if status:
        query = query.where(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc())


def find_orders_by_restaurant(restaurant_ids: Sequence[int], status: Optional[OrderStatus] = None):
    query = select(Order).where(Order.restaurant_id.in_(restaurant_ids))
    if status:
        query = query.where(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc())


def find_orders_by_rider(rider_id: int, status: Optional[OrderStatus] = None):
    # active deliveries first, then delivered, then the rest
    priority = case(
        (Order.status.in_(ACTIVE_DELIVERY_STATUSES), 0),
        (Order.status == OrderStatus.delivered, 1),
        else_=2,
    )

    query = select(Order).where(Order.rider_id == rider_id)
    if status:
        query = query.where(Order.status == status)
    return query.order_by(priority, Order.created_at.desc(), Order.id.desc())


def count_by_rider_and_statuses(
    session: Session,
    rider_id: int,
    statuses: Sequence[OrderStatus] = ACTIVE_DELIVERY_STATUSES,
) -> int:
    return session.exec(
        select(func.count())
        .select_from(Order)
        .where(Order.rider_id == rider_id)
        .where(Order.status.in_(statuses))
    ).one()


def unassigned_ready_query():
    return (
        select(Order)
        .where(Order.status == OrderStatus.ready)
        .where(Order.rider_id.is_(None))
        .order_by(Order.created_at.asc(), Order.id.asc())
    )


def find_oldest_unassigned_ready(session: Session, limit: int = 1) -> List[Order]:
    return list(session.exec(unassigned_ready_query().limit(limit)).all())
