from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    preparing = "preparing"
    ready = "ready"
    out_for_delivery = "out_for_delivery"
    delivered = "delivered"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    refunded = "refunded"


class UserRole(str, Enum):
    customer = "customer"
    restaurant_owner = "restaurant_owner"
    rider = "rider"


TERMINAL_STATUSES = frozenset({OrderStatus.delivered, OrderStatus.cancelled})

# statuses that keep a rider busy
ACTIVE_DELIVERY_STATUSES = (OrderStatus.ready, OrderStatus.out_for_delivery)

# (current status, actor role) -> statuses that actor may move the order to
ALLOWED_TRANSITIONS = {
    (OrderStatus.pending, UserRole.restaurant_owner): frozenset({OrderStatus.confirmed}),
    (OrderStatus.confirmed, UserRole.restaurant_owner): frozenset({OrderStatus.preparing}),
    (OrderStatus.preparing, UserRole.restaurant_owner): frozenset({OrderStatus.ready}),

    (OrderStatus.ready, UserRole.rider): frozenset({OrderStatus.out_for_delivery}),
    (OrderStatus.out_for_delivery, UserRole.rider): frozenset({OrderStatus.delivered}),
}

# a customer may cancel any order that has not finished
ALLOWED_TRANSITIONS.update({
    (status, UserRole.customer): frozenset({OrderStatus.cancelled})
    for status in OrderStatus
    if status not in TERMINAL_STATUSES
})


def allowed_targets(status: OrderStatus, role: UserRole) -> frozenset:
    return ALLOWED_TRANSITIONS.get((OrderStatus(status), UserRole(role)), frozenset())


def role_targets(role: UserRole) -> frozenset:
    """Every status ``role`` can ever set, whatever the current one."""
    role = UserRole(role)
    return frozenset().union(
        *(targets for (_, r), targets in ALLOWED_TRANSITIONS.items() if r == role)
    )


# order in which statuses appear on the tracking timeline
TIMELINE_STATUSES = (
    OrderStatus.pending,
    OrderStatus.confirmed,
    OrderStatus.preparing,
    OrderStatus.ready,
    OrderStatus.out_for_delivery,
    OrderStatus.delivered,
    OrderStatus.cancelled,
)

RIDER_ASSIGNED_EVENT = "rider_assigned"

# values allowed in order_event.event_type
ORDER_EVENT_TYPES = tuple(status.value for status in OrderStatus) + (RIDER_ASSIGNED_EVENT,)
