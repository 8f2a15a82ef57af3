from dataclasses import dataclass

from app.constants.order_status import OrderStatus, UserRole
from app.models.notifications import NotificationType
from app.notifications.channels import PushEvent


@dataclass(frozen=True)
class RecipientRule:
    recipient: UserRole
    type: NotificationType
    title: str
    message: str  # str.format template, see dispatcher.build_context
    push_event: PushEvent
    only_with_rider: bool = False


def _customer(type_, title, message, push_event=PushEvent.ORDER_STATUS_UPDATE):
    return RecipientRule(UserRole.customer, type_, title, message, push_event)


def _owner(type_, title, message, push_event=PushEvent.ORDER_UPDATE):
    return RecipientRule(UserRole.restaurant_owner, type_, title, message, push_event)


def _rider(type_, title, message, push_event=PushEvent.ORDER_ASSIGNED):
    return RecipientRule(UserRole.rider, type_, title, message, push_event, only_with_rider=True)


# Emitted by the converter once the order is committed.
ORDER_PLACED_RULES = (
    _customer(
        NotificationType.order_placed,
        "Order Placed",
        "Your order #{order_number} has been placed successfully. Total: ₹{total_amount}",
    ),
    _owner(
        NotificationType.new_order,
        "New Order Received",
        "You have received a new order #{order_number} from {customer_name}. Total: ₹{total_amount}",
        PushEvent.NEW_ORDER,
    ),
)


# Emitted by the dispatch engine after a rider is bound to the order.
RIDER_ASSIGNED_RULES = (
    _rider(
        NotificationType.order_assigned,
        "New Order Assigned",
        "You have been assigned order #{order_number} from {restaurant_name}. Total: ₹{total_amount}",
    ),
    _customer(
        NotificationType.rider_assigned,
        "Rider Assigned",
        "{rider_name} will deliver your order #{order_number}",
    ),
)


# new status -> who hears about it
NOTIFICATION_RULES = {

    OrderStatus.confirmed: (
        _customer(
            NotificationType.order_confirmed,
            "Order Confirmed",
            "Your order #{order_number} has been confirmed by {restaurant_name}",
        ),
    ),

    OrderStatus.preparing: (
        _customer(
            NotificationType.order_preparing,
            "Order Being Prepared",
            "{restaurant_name} is now preparing your order #{order_number}",
        ),
    ),

    OrderStatus.ready: (
        _customer(
            NotificationType.order_ready,
            "Order Ready",
            "Your order #{order_number} is ready for pickup",
        ),
        _rider(
            NotificationType.order_ready_for_pickup,
            "Order Ready for Pickup",
            "Order #{order_number} is ready for pickup at {restaurant_name}",
        ),
    ),

    OrderStatus.out_for_delivery: (
        _customer(
            NotificationType.order_out_for_delivery,
            "Order Out for Delivery",
            "Your order #{order_number} is on the way!",
        ),
        _owner(
            NotificationType.order_out_for_delivery_restaurant,
            "Order Picked Up",
            "Order #{order_number} has been picked up by {rider_name}",
        ),
    ),

    OrderStatus.delivered: (
        _customer(
            NotificationType.order_delivered,
            "Order Delivered",
            "Your order #{order_number} has been delivered. Enjoy your meal!",
        ),
        _owner(
            NotificationType.order_delivered,
            "Order Delivered",
            "Order #{order_number} has been delivered to the customer",
        ),
        _rider(
            NotificationType.order_delivered_rider,
            "Delivery Completed",
            "Order #{order_number} marked as delivered. You earned ₹{rider_earning}",
            PushEvent.ORDER_UPDATE,
        ),
    ),

    OrderStatus.cancelled: (
        _customer(
            NotificationType.order_cancelled,
            "Order Cancelled",
            "Your order #{order_number} has been cancelled",
        ),
        _owner(
            NotificationType.order_cancelled_restaurant,
            "Order Cancelled",
            "Order #{order_number} has been cancelled",
        ),
        _rider(
            NotificationType.order_cancelled_rider,
            "Order Cancelled",
            "Order #{order_number} has been cancelled",
            PushEvent.ORDER_UPDATE,
        ),
    ),

}
