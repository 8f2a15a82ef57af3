# app/services/order_service.py
"""
Order lifecycle: cart -> order conversion and role-gated status transitions.

Both operations commit or roll back as a unit. Notifications and rider
dispatch are not done here; a committed change is announced through the
outbox and handled afterwards, so their failures never touch the order.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import (
    OrderStatus,
    PaymentStatus,
    UserRole,
    allowed_targets,
)
from app.exceptions import (
    ConflictError,
    EmptyCartError,
    ForbiddenError,
    InternalError,
    InvalidTransitionError,
    NotFoundError,
    RestaurantUnavailableError,
    ValidationError,
)
from app.models.address import Address
from app.models.cart import Cart
from app.models.menu_item import MenuItem
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.restaurant import Restaurant
from app.notifications.events import DomainEvent
from app.services.order_event_service import build_status_timeline, log_order_event
from app.services.order_store import (
    create_order_transactional,
    generate_order_number,
    get_order,
    update_order_if_status,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Actor:
    """Caller identity as resolved by the auth layer; trusted as given."""

    user_id: int
    role: UserRole


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, ROUND_HALF_UP)


def compute_rider_earning(delivery_fee) -> Decimal:
    return _money(Decimal(delivery_fee) * settings.RIDER_EARNING_RATE)


def _emit(outbox, event: DomainEvent) -> None:
    if outbox is not None:
        outbox.emit(event)


# ---------- CART -> ORDER ----------

def place_order(
    session: Session,
    customer_id: int,
    address_id: int,
    *,
    special_instructions: Optional[str] = None,
    outbox=None,
    now: Optional[datetime] = None,
) -> Order:
    cart = session.exec(select(Cart).where(Cart.user_id == customer_id)).first()

    if not cart or not cart.items:
        raise EmptyCartError()

    address = session.get(Address, address_id)
    if not address:
        raise NotFoundError("Address not found")
    if address.user_id != customer_id:
        raise ForbiddenError("You can only use your own addresses")

    restaurant = session.get(Restaurant, cart.restaurant_id)
    if not restaurant or not restaurant.is_active or not restaurant.is_accepting_orders:
        raise RestaurantUnavailableError()

    subtotal = _money(sum((Decimal(item.price) * item.quantity for item in cart.items), Decimal("0")))
    delivery_fee = _money(settings.DELIVERY_FEE)
    now = now or datetime.utcnow()

    # snapshot names/prices before the cart goes away
    items = []
    for cart_item in cart.items:
        items.append(
            OrderItem(
                menu_item_id=cart_item.menu_item_id,
                item_name=_menu_item_name(session, cart_item.menu_item_id),
                price=_money(cart_item.price),
                quantity=cart_item.quantity,
            )
        )

    try:
        order = Order(
            customer_id=customer_id,
            restaurant_id=cart.restaurant_id,
            address_id=address_id,
            order_number=generate_order_number(session, now),
            status=OrderStatus.pending,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total_amount=subtotal + delivery_fee,
            payment_status=PaymentStatus.pending,  # payment is not processed here
            special_instructions=special_instructions,
            created_at=now,
            updated_at=now,
        )
        create_order_transactional(session, order, items, cart)
        log_order_event(
            session,
            order_id=order.id,
            event_type=OrderStatus.pending,
            label="Order placed",
            created_by=f"customer:{customer_id}",
            created_at=now,
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Placing order for customer %s failed", customer_id)
        raise InternalError("Could not place order") from exc
    except Exception:
        session.rollback()
        raise

    session.refresh(order)
    logger.info("Order %s placed by customer %s", order.order_number, customer_id)

    _emit(outbox, DomainEvent.order_placed(order.id))
    return order


def _menu_item_name(session: Session, menu_item_id: int) -> str:
    menu_item = session.get(MenuItem, menu_item_id)
    if not menu_item:
        raise ValidationError(f"Menu item {menu_item_id} no longer exists")
    return menu_item.name


# ---------- STATE MACHINE ----------

def _authorize(session: Session, order: Order, actor: Actor) -> None:
    role = UserRole(actor.role)

    if role == UserRole.restaurant_owner:
        restaurant = session.get(Restaurant, order.restaurant_id)
        if not restaurant or restaurant.owner_id != actor.user_id:
            raise ForbiddenError("You can only update orders for your own restaurants")
        return

    if role == UserRole.rider:
        if order.rider_id != actor.user_id:
            raise ForbiddenError("You can only update orders assigned to you")
        return

    if role == UserRole.customer:
        if order.customer_id != actor.user_id:
            raise ForbiddenError("You can only cancel your own orders")
        return

    raise ForbiddenError()


def status_side_effects(
    order: Order,
    target: OrderStatus,
    now: datetime,
    reason: Optional[str] = None,
) -> dict:
    if target == OrderStatus.delivered:
        patch = {"delivered_at": now}
        if order.rider_id and order.delivery_fee:
            patch["rider_earning"] = compute_rider_earning(order.delivery_fee)
        return patch

    if target == OrderStatus.cancelled:
        return {
            "cancelled_at": now,
            "cancellation_reason": reason,
            "rider_earning": None,
        }

    return {}


def transition_order(
    session: Session,
    order_id: int,
    actor: Actor,
    target_status,
    *,
    reason: Optional[str] = None,
    estimated_delivery_time: Optional[int] = None,
    outbox=None,
) -> Order:
    order = get_order(session, order_id)

    if not order:
        raise NotFoundError("Order not found")

    _authorize(session, order, actor)

    try:
        target = OrderStatus(target_status)
    except ValueError:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(s.value for s in OrderStatus)}"
        )

    current = OrderStatus(order.status)
    allowed = allowed_targets(current, actor.role)

    if target not in allowed:
        valid = ", ".join(sorted(s.value for s in allowed)) or "none"
        raise InvalidTransitionError(
            f"Cannot change status from {current.value} to {target.value}. Valid transitions: {valid}"
        )

    now = datetime.utcnow()
    patch = {"status": target, "updated_at": now}
    patch.update(status_side_effects(order, target, now, reason))
    if estimated_delivery_time is not None:
        patch["estimated_delivery_time"] = estimated_delivery_time

    guard = {}
    if UserRole(actor.role) == UserRole.rider:
        guard["expected_rider_id"] = actor.user_id

    try:
        if not update_order_if_status(session, order.id, current, patch, **guard):
            session.rollback()
            raise ConflictError(
                f"Order #{order.order_number} was updated by another request; reload and retry"
            )

        log_order_event(
            session,
            order_id=order.id,
            event_type=target,
            label=f"Status changed from {current.value} to {target.value}",
            created_by=f"{UserRole(actor.role).value}:{actor.user_id}",
            meta={"reason": reason} if reason else None,
            created_at=now,
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Status update for order %s failed", order_id)
        raise InternalError("Could not update order status") from exc

    session.refresh(order)
    logger.info(
        "Order %s: %s -> %s by %s %s",
        order.order_number, current.value, target.value, UserRole(actor.role).value, actor.user_id,
    )

    _emit(outbox, DomainEvent.status_changed(order.id, current, target))
    return order


def cancel_order(
    session: Session,
    order_id: int,
    actor: Actor,
    reason: Optional[str] = None,
    *,
    outbox=None,
) -> Order:
    return transition_order(
        session, order_id, actor, OrderStatus.cancelled, reason=reason, outbox=outbox
    )


# ---------- READS ----------

def get_order_for_actor(session: Session, order_id: int, actor: Actor) -> Order:
    order = get_order(session, order_id)

    if not order:
        raise NotFoundError("Order not found")

    role = UserRole(actor.role)

    if role == UserRole.customer and order.customer_id != actor.user_id:
        raise ForbiddenError("You can only view your own orders")

    if role == UserRole.restaurant_owner:
        restaurant = session.get(Restaurant, order.restaurant_id)
        if not restaurant or restaurant.owner_id != actor.user_id:
            raise ForbiddenError("You can only view orders for your restaurants")

    if role == UserRole.rider and order.rider_id != actor.user_id:
        raise ForbiddenError("You can only view orders assigned to you")

    return order


def order_summary(order: Order) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "customer_id": order.customer_id,
        "restaurant_id": order.restaurant_id,
        "address_id": order.address_id,
        "rider_id": order.rider_id,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "total_amount": order.total_amount,
        "payment_status": order.payment_status,
        "rider_earning": order.rider_earning,
        "special_instructions": order.special_instructions,
        "estimated_delivery_time": order.estimated_delivery_time,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
        "cancellation_reason": order.cancellation_reason,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def track_order(session: Session, order_id: int, actor: Actor) -> dict:
    order = get_order_for_actor(session, order_id, actor)
    restaurant = session.get(Restaurant, order.restaurant_id)

    return {
        "order": {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "restaurant": {
                "id": restaurant.id,
                "name": restaurant.name,
            } if restaurant else None,
            "rider_id": order.rider_id,
            "estimated_delivery_time": order.estimated_delivery_time,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "delivered_at": order.delivered_at,
            "cancelled_at": order.cancelled_at,
        },
        "status_timeline": build_status_timeline(session, order),
    }
