from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal

from app.constants.order_status import OrderStatus


class PlaceOrderRequest(BaseModel):
    address_id: int
    special_instructions: Optional[str] = Field(default=None, max_length=500)


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    estimated_delivery_time: Optional[int] = Field(default=None, ge=0)


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class PlacedOrderItem(BaseModel):
    menu_item_id: int
    item_name: str
    price: Decimal
    quantity: int
    line_total: Decimal


class PlaceOrderResponse(BaseModel):
    order_id: int
    order_number: str
    status: OrderStatus
    message: str
    items: List[PlacedOrderItem]
    subtotal: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    payment_status: str
    track_order_url: str
