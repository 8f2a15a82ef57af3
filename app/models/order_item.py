from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING
from decimal import Decimal

if TYPE_CHECKING:
    from app.models.order import Order

class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    menu_item_id: int = Field(foreign_key="menu_item.id")

    # snapshots taken from the cart at placement time
    item_name: str
    price: Decimal = Field(max_digits=10, decimal_places=2)
    quantity: int = Field(ge=1)

    order: Optional["Order"] = Relationship(back_populates="items")
