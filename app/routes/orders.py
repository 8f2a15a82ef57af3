from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query
from sqlmodel import Session, select

from app.constants.order_status import OrderStatus, UserRole
from app.database import get_session
from app.dependencies.roles import get_actor, require_customer, require_restaurant_owner, require_role
from app.models.order_item import OrderItem
from app.models.restaurant import Restaurant
from app.models.user import User
from app.notifications.outbox import Outbox, get_outbox
from app.schemas.orders_schemas import (
    CancelOrderRequest,
    PlacedOrderItem,
    PlaceOrderRequest,
    PlaceOrderResponse,
    StatusUpdateRequest,
)
from app.services.order_service import (
    Actor,
    cancel_order,
    get_order_for_actor,
    order_summary,
    place_order,
    track_order,
    transition_order,
)
from app.services.order_store import find_orders_by_customer, find_orders_by_restaurant
from app.utils.pagination import empty_page, paginate

router = APIRouter()


# Place Order (cart -> order)

@router.post("", status_code=201, response_model=PlaceOrderResponse)
def place_order_endpoint(
    data: PlaceOrderRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
    outbox: Outbox = Depends(get_outbox),
):
    order = place_order(
        session,
        current_user.id,
        data.address_id,
        special_instructions=data.special_instructions,
        outbox=outbox,
    )
    background_tasks.add_task(outbox.flush)

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    return PlaceOrderResponse(
        order_id=order.id,
        order_number=order.order_number,
        status=order.status,
        message="Order placed successfully",
        items=[
            PlacedOrderItem(
                menu_item_id=i.menu_item_id,
                item_name=i.item_name,
                price=i.price,
                quantity=i.quantity,
                line_total=i.price * i.quantity,
            )
            for i in items
        ],
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        total_amount=order.total_amount,
        payment_status=order.payment_status.value,
        track_order_url=f"/orders/{order.id}/track",
    )


# Customer order history

@router.get("")
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: OrderStatus | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    return paginate(
        session=session,
        query=find_orders_by_customer(current_user.id, status),
        page=page,
        limit=limit,
        serialize=order_summary,
    )


# Restaurant owner orders

@router.get("/restaurant/my-orders")
def list_restaurant_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: OrderStatus | None = None,
    restaurant_id: int | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_restaurant_owner),
):
    query = select(Restaurant.id).where(Restaurant.owner_id == current_user.id)
    if restaurant_id:
        query = query.where(Restaurant.id == restaurant_id)

    restaurant_ids = session.exec(query).all()

    if not restaurant_ids:
        return empty_page(page, limit)

    return paginate(
        session=session,
        query=find_orders_by_restaurant(restaurant_ids, status),
        page=page,
        limit=limit,
        serialize=order_summary,
    )


# Order details

@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    order = get_order_for_actor(session, order_id, actor)

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    return {
        **order_summary(order),
        "items": [
            {
                "menu_item_id": i.menu_item_id,
                "item_name": i.item_name,
                "price": i.price,
                "quantity": i.quantity,
                "total": i.price * i.quantity,
            }
            for i in items
        ],
    }


# Status update (restaurant owner / rider)

@router.put("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.restaurant_owner, UserRole.rider)),
    outbox: Outbox = Depends(get_outbox),
):
    actor = Actor(user_id=current_user.id, role=current_user.role)

    order = transition_order(
        session,
        order_id,
        actor,
        data.status,
        estimated_delivery_time=data.estimated_delivery_time,
        outbox=outbox,
    )
    background_tasks.add_task(outbox.flush)

    event = outbox.pending[-1]

    return {
        "message": f"Order status updated from {event.old_status.value} to {event.new_status.value}",
        "order": order_summary(order),
    }


# Cancel (customer)

@router.put("/{order_id}/cancel")
def cancel_my_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    data: CancelOrderRequest | None = Body(default=None),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
    outbox: Outbox = Depends(get_outbox),
):
    actor = Actor(user_id=current_user.id, role=current_user.role)

    order = cancel_order(
        session,
        order_id,
        actor,
        reason=data.reason if data else None,
        outbox=outbox,
    )
    background_tasks.add_task(outbox.flush)

    return {
        "message": "Order cancelled successfully",
        "order": {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "cancelled_at": order.cancelled_at,
            "cancellation_reason": order.cancellation_reason,
        },
    }


# Track order

@router.get("/{order_id}/track")
def track_order_endpoint(
    order_id: int,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    return track_order(session, order_id, actor)
