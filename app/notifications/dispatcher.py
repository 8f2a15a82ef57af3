import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.constants.order_status import OrderStatus, UserRole
from app.models.notifications import Notification, NotificationType
from app.models.order import Order
from app.models.restaurant import Restaurant
from app.models.user import User
from app.notifications.channels import ConnectionManager, PushEvent, connection_manager
from app.notifications.rules import (
    NOTIFICATION_RULES,
    ORDER_PLACED_RULES,
    RIDER_ASSIGNED_RULES,
    RecipientRule,
)
from app.services.notification_service import create_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedNotification:
    user_id: int
    user_role: UserRole
    type: NotificationType
    title: str
    message: str
    data: dict
    push_event: PushEvent


def _money(value) -> str:
    return f"{float(value or 0):.2f}"


def build_context(order: Order, restaurant: Optional[Restaurant], customer: Optional[User], rider: Optional[User]) -> dict:
    return {
        "order_number": order.order_number,
        "total_amount": _money(order.total_amount),
        "rider_earning": _money(order.rider_earning),
        "restaurant_name": restaurant.name if restaurant else "the restaurant",
        "customer_name": customer.name if customer else "Customer",
        "rider_name": rider.name if rider else "Your rider",
    }


def _recipient_id(rule: RecipientRule, order: Order, restaurant: Optional[Restaurant]) -> Optional[int]:
    if rule.recipient == UserRole.customer:
        return order.customer_id
    if rule.recipient == UserRole.restaurant_owner:
        return restaurant.owner_id if restaurant else None
    return order.rider_id


def plan_notifications(
    rules: Iterable[RecipientRule],
    order: Order,
    *,
    restaurant: Optional[Restaurant] = None,
    customer: Optional[User] = None,
    rider: Optional[User] = None,
    status: Optional[OrderStatus] = None,
    old_status: Optional[OrderStatus] = None,
) -> List[PlannedNotification]:
    """Turn a rule set into concrete (recipient, message) pairs for one order."""
    context = build_context(order, restaurant, customer, rider)
    data = {
        "order_id": order.id,
        "order_number": order.order_number,
        "restaurant_id": order.restaurant_id,
        "restaurant_name": restaurant.name if restaurant else None,
        "status": (status or order.status).value,
        "old_status": old_status.value if old_status else None,
        "total_amount": float(order.total_amount),
    }

    planned = []
    for rule in rules:
        if rule.only_with_rider and not order.rider_id:
            continue

        user_id = _recipient_id(rule, order, restaurant)
        if user_id is None:
            logger.warning(
                "No %s to notify for order %s", rule.recipient.value, order.order_number
            )
            continue

        planned.append(
            PlannedNotification(
                user_id=user_id,
                user_role=rule.recipient,
                type=rule.type,
                title=rule.title,
                message=rule.message.format(**context),
                data=dict(data),
                push_event=rule.push_event,
            )
        )
    return planned


def dispatch_notifications(
    session: Session,
    planned: Iterable[PlannedNotification],
    *,
    channel: ConnectionManager = connection_manager,
) -> List[Notification]:
    """
    Persist each notification, then push it.

    Entries are independent: a failed insert or push is logged and the
    remaining recipients are still served.
    """
    created = []

    for entry in planned:
        try:
            notification = create_notification(
                session=session,
                user_id=entry.user_id,
                user_role=entry.user_role,
                type=entry.type,
                title=entry.title,
                message=entry.message,
                data=entry.data,
            )
        except SQLAlchemyError:
            session.rollback()
            logger.exception(
                "Error creating %s notification for user %s", entry.type.value, entry.user_id
            )
            continue

        created.append(notification)

        try:
            channel.push_to_user(
                entry.user_id,
                entry.push_event,
                {
                    "id": notification.id,
                    "type": notification.type,
                    "title": notification.title,
                    "message": notification.message,
                    **notification.data,
                },
            )
        except Exception:
            logger.exception("Push to user %s failed", entry.user_id)

    return created


def _load_parties(session: Session, order: Order):
    restaurant = session.get(Restaurant, order.restaurant_id)
    customer = session.get(User, order.customer_id)
    rider = session.get(User, order.rider_id) if order.rider_id else None
    return restaurant, customer, rider


def notify_order_status_change(
    session: Session,
    order: Order,
    status: OrderStatus,
    old_status: Optional[OrderStatus] = None,
    *,
    channel: ConnectionManager = connection_manager,
) -> List[Notification]:
    rules = NOTIFICATION_RULES.get(OrderStatus(status), ())
    if not rules:
        return []

    restaurant, customer, rider = _load_parties(session, order)
    planned = plan_notifications(
        rules, order,
        restaurant=restaurant, customer=customer, rider=rider,
        status=OrderStatus(status), old_status=old_status,
    )
    return dispatch_notifications(session, planned, channel=channel)


def notify_order_placed(
    session: Session,
    order: Order,
    *,
    channel: ConnectionManager = connection_manager,
) -> List[Notification]:
    restaurant, customer, rider = _load_parties(session, order)
    planned = plan_notifications(
        ORDER_PLACED_RULES, order,
        restaurant=restaurant, customer=customer, rider=rider,
        status=OrderStatus.pending,
    )
    return dispatch_notifications(session, planned, channel=channel)


def notify_rider_assigned(
    session: Session,
    order: Order,
    *,
    channel: ConnectionManager = connection_manager,
) -> List[Notification]:
    restaurant, customer, rider = _load_parties(session, order)
    planned = plan_notifications(
        RIDER_ASSIGNED_RULES, order,
        restaurant=restaurant, customer=customer, rider=rider,
    )
    return dispatch_notifications(session, planned, channel=channel)
