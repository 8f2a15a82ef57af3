from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Restaurant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = Field(default=True)
    is_accepting_orders: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
