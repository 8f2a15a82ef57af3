from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlmodel import Session, select, func

from app.constants.order_status import OrderStatus, UserRole, role_targets
from app.database import get_session
from app.dependencies.roles import require_rider
from app.models.address import Address
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.restaurant import Restaurant
from app.models.user import User
from app.notifications.outbox import Outbox, get_outbox
from app.schemas.orders_schemas import StatusUpdateRequest
from app.schemas.rider_schemas import RiderStats
from app.services.order_service import Actor, transition_order
from app.services.order_store import find_orders_by_rider, unassigned_ready_query
from app.services.rider_service import get_rider_stats
from app.utils.pagination import paginate

router = APIRouter()

# statuses the transition table lets a rider set
RIDER_STATUSES = role_targets(UserRole.rider)


def _delivery_card(session: Session, order: Order, include_customer: bool = True) -> dict:
    restaurant = session.get(Restaurant, order.restaurant_id)
    address = session.get(Address, order.address_id)
    item_count = session.exec(
        select(func.count()).select_from(OrderItem).where(OrderItem.order_id == order.id)
    ).one()

    card = {
        "id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "restaurant": {
            "id": restaurant.id,
            "name": restaurant.name,
            "phone": restaurant.phone,
            "address": restaurant.address,
        } if restaurant else None,
        "delivery_address": {
            "address_line": address.address_line,
            "city": address.city,
            "state": address.state,
            "zip_code": address.zip_code,
        } if address else None,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "total_amount": order.total_amount,
        "rider_earning": order.rider_earning,
        "item_count": item_count,
        "estimated_delivery_time": order.estimated_delivery_time,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }

    if include_customer:
        customer = session.get(User, order.customer_id)
        card["customer"] = {
            "id": customer.id,
            "name": customer.name,
            "phone": customer.phone,
        } if customer else None

    return card


# Orders assigned to me

@router.get("/orders")
def my_deliveries(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: OrderStatus | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_rider),
):
    return paginate(
        session=session,
        query=find_orders_by_rider(current_user.id, status),
        page=page,
        limit=limit,
        serialize=lambda order: _delivery_card(session, order),
    )


# Ready but unassigned (visibility only; assignment is automatic)

@router.get("/orders/available")
def available_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    _: User = Depends(require_rider),
):
    return paginate(
        session=session,
        query=unassigned_ready_query(),
        page=page,
        limit=limit,
        serialize=lambda order: _delivery_card(session, order, include_customer=False),
    )


@router.get("/stats", response_model=RiderStats)
def rider_stats(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_rider),
):
    return get_rider_stats(session, current_user.id)


# Pick up / deliver

@router.put("/orders/{order_id}/status")
def update_delivery_status(
    order_id: int,
    data: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_rider),
    outbox: Outbox = Depends(get_outbox),
):
    if data.status not in RIDER_STATUSES:
        raise HTTPException(
            400,
            f"Invalid status. Riders can only update to: {', '.join(sorted(s.value for s in RIDER_STATUSES))}",
        )

    order = transition_order(
        session,
        order_id,
        Actor(user_id=current_user.id, role=current_user.role),
        data.status,
        estimated_delivery_time=data.estimated_delivery_time,
        outbox=outbox,
    )
    background_tasks.add_task(outbox.flush)

    return {
        "message": f"Order status updated to {order.status.value}",
        "order": {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "rider_earning": order.rider_earning,
            "estimated_delivery_time": order.estimated_delivery_time,
            "delivered_at": order.delivered_at,
            "updated_at": order.updated_at,
        },
    }
