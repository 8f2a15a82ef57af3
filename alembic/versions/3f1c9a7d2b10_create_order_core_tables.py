"""create order core tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-18 10:12:41.502113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


USER_ROLES = ("customer", "restaurant_owner", "rider")
ORDER_STATUSES = (
    "pending", "confirmed", "preparing", "ready",
    "out_for_delivery", "delivered", "cancelled",
)
PAYMENT_STATUSES = ("pending", "paid", "refunded")
NOTIFICATION_TYPES = (
    "order_placed", "order_confirmed", "order_preparing", "order_ready",
    "order_out_for_delivery", "order_delivered", "order_cancelled",
    "rider_assigned", "new_order", "order_out_for_delivery_restaurant",
    "order_cancelled_restaurant", "order_assigned", "order_ready_for_pickup",
    "order_delivered_rider", "order_cancelled_rider",
)


def upgrade():
    user_role = sa.Enum(*USER_ROLES, name="userrole")
    order_status = sa.Enum(*ORDER_STATUSES, name="orderstatus")
    payment_status = sa.Enum(*PAYMENT_STATUSES, name="paymentstatus")
    notification_type = sa.Enum(*NOTIFICATION_TYPES, name="notificationtype")

    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)
    op.create_index("ix_user_role", "user", ["role"])

    op.create_table(
        "restaurant",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_accepting_orders", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_restaurant_owner_id", "restaurant", ["owner_id"])

    op.create_table(
        "address",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("address_line", sa.String(), nullable=False),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("zip_code", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "menu_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurant.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_menu_item_restaurant_id", "menu_item", ["restaurant_id"])

    op.create_table(
        "cart",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False, unique=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurant.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "cart_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cart_id", sa.Integer(), sa.ForeignKey("cart.id", ondelete="CASCADE"), nullable=False),
        sa.Column("menu_item_id", sa.Integer(), sa.ForeignKey("menu_item.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cart_item_cart_id", "cart_item", ["cart_id"])

    op.create_table(
        "order",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurant.id"), nullable=False),
        sa.Column("address_id", sa.Integer(), sa.ForeignKey("address.id"), nullable=False),
        sa.Column("rider_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("order_number", sa.String(), nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_status", payment_status, nullable=False),
        sa.Column("rider_earning", sa.Numeric(10, 2), nullable=True),
        sa.Column("special_instructions", sa.String(), nullable=True),
        sa.Column("estimated_delivery_time", sa.Integer(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancellation_reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_order_order_number", "order", ["order_number"], unique=True)
    op.create_index("ix_order_customer_id", "order", ["customer_id"])
    op.create_index("ix_order_restaurant_id", "order", ["restaurant_id"])
    op.create_index("ix_order_rider_id", "order", ["rider_id"])
    op.create_index("ix_order_status", "order", ["status"])
    op.create_index("ix_order_created_at", "order", ["created_at"])

    op.create_table(
        "order_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("menu_item_id", sa.Integer(), sa.ForeignKey("menu_item.id"), nullable=False),
        sa.Column("item_name", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
    )
    op.create_index("ix_order_item_order_id", "order_item", ["order_id"])

    op.create_table(
        "order_event",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "order_id", sa.Integer(), sa.ForeignKey("order.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
        sa.CheckConstraint(
            "event_type IN ('pending', 'confirmed', 'preparing', 'ready', "
            "'out_for_delivery', 'delivered', 'cancelled', 'rider_assigned')",
            name="ck_order_event_event_type",
        ),
    )

    # timeline reads are per order, oldest first
    op.create_index(
        "ix_order_event_order_id_created_at", "order_event", ["order_id", "created_at"]
    )

    op.create_table(
        "order_sequence",
        sa.Column("day", sa.String(length=8), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("user_role", user_role, nullable=False),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notification_user_id", "notification", ["user_id"])
    op.create_index("ix_notification_type", "notification", ["type"])
    op.create_index("ix_notification_read", "notification", ["read"])
    op.create_index("ix_notification_created_at", "notification", ["created_at"])


def downgrade():
    op.drop_table("notification")
    op.drop_table("order_sequence")
    op.drop_index("ix_order_event_order_id_created_at", table_name="order_event")
    op.drop_table("order_event")
    op.drop_table("order_item")
    op.drop_table("order")
    op.drop_table("cart_item")
    op.drop_table("cart")
    op.drop_table("menu_item")
    op.drop_table("address")
    op.drop_table("restaurant")
    op.drop_table("user")

    bind = op.get_bind()
    for name in ("notificationtype", "paymentstatus", "orderstatus", "userrole"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
