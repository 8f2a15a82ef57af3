from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.constants.order_status import OrderStatus, PaymentStatus
from app.models.order_item import OrderItem


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="user.id", index=True)
    restaurant_id: int = Field(foreign_key="restaurant.id", index=True)
    address_id: int = Field(foreign_key="address.id")
    rider_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    order_number: str = Field(unique=True, index=True)
    status: OrderStatus = Field(default=OrderStatus.pending, index=True)

    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    delivery_fee: Decimal = Field(max_digits=10, decimal_places=2)
    # always subtotal + delivery_fee
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)

    payment_status: PaymentStatus = Field(default=PaymentStatus.pending)
    rider_earning: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    special_instructions: Optional[str] = None
    estimated_delivery_time: Optional[int] = None  # minutes

    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
