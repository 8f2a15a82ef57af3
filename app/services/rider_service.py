# app/services/rider_service.py
"""
Rider dispatch.

A rider is *available* when active and holding no order in ``ready`` or
``out_for_delivery``. ``auto_assign_rider`` binds one ready order to the
least loaded available rider; ``drain_backlog`` walks the oldest unassigned
ready orders when capacity frees up. Neither retries on its own: callers
trigger them when an order becomes ready or a rider delivers.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import (
    ACTIVE_DELIVERY_STATUSES,
    RIDER_ASSIGNED_EVENT,
    OrderStatus,
    UserRole,
)
from app.exceptions import ConflictError, NotFoundError, OrderServiceError
from app.models.order import Order
from app.models.user import User
from app.schemas.rider_schemas import (
    AssignmentResult,
    RiderInfo,
    RiderStats,
    RiderStatsCounts,
)
from app.services.order_event_service import log_order_event
from app.services.order_store import (
    count_by_rider_and_statuses,
    find_oldest_unassigned_ready,
    update_order_if_unassigned,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def find_available_riders(session: Session, limit: Optional[int] = None) -> List[User]:
    """Active riders without an active delivery, in stable id order."""
    busy = (
        select(Order.id)
        .where(Order.rider_id == User.id)
        .where(Order.status.in_(ACTIVE_DELIVERY_STATUSES))
        .exists()
    )

    query = (
        select(User)
        .where(User.role == UserRole.rider)
        .where(User.is_active == True)  # noqa: E712
        .where(~busy)
        .order_by(User.id)
        .limit(limit or settings.RIDER_CANDIDATE_POOL)
    )
    return list(session.exec(query).all())


def pick_least_loaded(candidates: List[User], loads: dict) -> User:
    # min() keeps the first rider among equal loads
    return min(candidates, key=lambda rider: loads[rider.id])


def auto_assign_rider(session: Session, order_id: int) -> AssignmentResult:
    order = session.get(Order, order_id)

    if not order:
        raise NotFoundError("Order not found")

    order_number = order.order_number

    if order.status != OrderStatus.ready:
        return AssignmentResult(
            success=False,
            message=f"Order must be in 'ready' status. Current status: {order.status.value}",
            order_id=order.id,
            order_number=order_number,
        )

    if order.rider_id:
        existing = session.get(User, order.rider_id)
        return AssignmentResult(
            success=True,
            message=f"Rider already assigned: {existing.name if existing else 'Unknown'}",
            order_id=order.id,
            order_number=order_number,
            rider_id=order.rider_id,
            rider_name=existing.name if existing else None,
            already_assigned=True,
        )

    candidates = find_available_riders(session)

    if not candidates:
        logger.warning("No available riders for order %s", order_number)
        return AssignmentResult(
            success=False,
            message="No available riders at the moment. Please try again later.",
            order_id=order.id,
            order_number=order_number,
        )

    loads = {
        rider.id: count_by_rider_and_statuses(session, rider.id, ACTIVE_DELIVERY_STATUSES)
        for rider in candidates
    }
    selected = pick_least_loaded(candidates, loads)
    rider_id, rider_name = selected.id, selected.name

    if not update_order_if_unassigned(session, order_id, rider_id):
        session.rollback()
        raise ConflictError(f"Order #{order_number} was assigned or changed by another request")

    log_order_event(
        session,
        order_id=order_id,
        event_type=RIDER_ASSIGNED_EVENT,
        label=f"Rider {rider_name} assigned",
        meta={"rider_id": rider_id},
    )
    session.commit()

    logger.info("Auto-assigned rider %s to order %s", rider_id, order_number)

    return AssignmentResult(
        success=True,
        message=f"Rider {rider_name} has been automatically assigned to the order",
        order_id=order_id,
        order_number=order_number,
        rider_id=rider_id,
        rider_name=rider_name,
    )


def drain_backlog(session: Session, max_assignments: int = 1) -> List[AssignmentResult]:
    """
    Try to assign the oldest unassigned ready orders, oldest first.

    Each order is reported on its own; one failure does not stop the rest.
    """
    backlog = [
        (order.id, order.order_number)
        for order in find_oldest_unassigned_ready(session, max_assignments)
    ]

    results = []
    for order_id, order_number in backlog:
        try:
            result = auto_assign_rider(session, order_id)
        except (OrderServiceError, SQLAlchemyError) as exc:
            session.rollback()
            logger.exception("Error assigning order %s", order_number)
            result = AssignmentResult(
                success=False,
                message=getattr(exc, "detail", None) or str(exc),
                order_id=order_id,
                order_number=order_number,
            )
        results.append(result)

    return results


def _sum(values) -> Decimal:
    return sum((Decimal(v or 0) for v in values), Decimal("0"))


def get_rider_stats(session: Session, rider_id: int, now: Optional[datetime] = None) -> RiderStats:
    rider = session.get(User, rider_id)

    if not rider or rider.role != UserRole.rider:
        raise NotFoundError("Rider not found")

    total_orders = count_by_rider_and_statuses(session, rider_id, list(OrderStatus))
    delivered_orders = count_by_rider_and_statuses(session, rider_id, [OrderStatus.delivered])
    active_orders = count_by_rider_and_statuses(session, rider_id, ACTIVE_DELIVERY_STATUSES)

    delivered = session.exec(
        select(Order.rider_earning, Order.delivered_at)
        .where(Order.rider_id == rider_id)
        .where(Order.status == OrderStatus.delivered)
    ).all()

    now = now or datetime.utcnow()
    today = now.date()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    total_earnings = _sum(earning for earning, _ in delivered)
    today_earnings = _sum(
        earning for earning, delivered_at in delivered
        if delivered_at and delivered_at.date() == today
    )
    month_earnings = _sum(
        earning for earning, delivered_at in delivered
        if delivered_at and delivered_at >= month_start
    )

    average = total_earnings / delivered_orders if delivered_orders else Decimal("0")
    completion_rate = (
        Decimal(delivered_orders * 100) / total_orders if total_orders else Decimal("0")
    )

    return RiderStats(
        rider=RiderInfo(id=rider.id, name=rider.name, email=rider.email, phone=rider.phone),
        stats=RiderStatsCounts(
            total_orders=total_orders,
            delivered_orders=delivered_orders,
            active_orders=active_orders,
            completion_rate=completion_rate.quantize(CENT, ROUND_HALF_UP),
            total_earnings=total_earnings.quantize(CENT, ROUND_HALF_UP),
            today_earnings=today_earnings.quantize(CENT, ROUND_HALF_UP),
            this_month_earnings=month_earnings.quantize(CENT, ROUND_HALF_UP),
            average_earning_per_delivery=average.quantize(CENT, ROUND_HALF_UP),
        ),
    )
