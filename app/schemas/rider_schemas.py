from pydantic import BaseModel
from typing import Optional
from decimal import Decimal


class AssignmentResult(BaseModel):
    success: bool
    message: str
    order_id: Optional[int] = None
    order_number: Optional[str] = None
    rider_id: Optional[int] = None
    rider_name: Optional[str] = None
    already_assigned: bool = False


class RiderInfo(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None


class RiderStatsCounts(BaseModel):
    total_orders: int
    delivered_orders: int
    active_orders: int
    completion_rate: Decimal
    total_earnings: Decimal
    today_earnings: Decimal
    this_month_earnings: Decimal
    average_earning_per_delivery: Decimal


class RiderStats(BaseModel):
    rider: RiderInfo
    stats: RiderStatsCounts
