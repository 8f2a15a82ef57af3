from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON

from app.constants.order_status import UserRole


# ---------- ENUMS (SAFE FOR SQLMODEL) ----------

class NotificationType(str, Enum):
    # customer
    order_placed = "order_placed"
    order_confirmed = "order_confirmed"
    order_preparing = "order_preparing"
    order_ready = "order_ready"
    order_out_for_delivery = "order_out_for_delivery"
    order_delivered = "order_delivered"
    order_cancelled = "order_cancelled"
    rider_assigned = "rider_assigned"

    # restaurant owner
    new_order = "new_order"
    order_out_for_delivery_restaurant = "order_out_for_delivery_restaurant"
    order_cancelled_restaurant = "order_cancelled_restaurant"

    # rider
    order_assigned = "order_assigned"
    order_ready_for_pickup = "order_ready_for_pickup"
    order_delivered_rider = "order_delivered_rider"
    order_cancelled_rider = "order_cancelled_rider"


# ---------- MODEL ----------

class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(index=True)
    user_role: UserRole
    type: NotificationType = Field(index=True)

    title: str
    message: str
    data: dict = Field(default_factory=dict, sa_column=Column(JSON))

    read: bool = Field(default=False, index=True)
    read_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
