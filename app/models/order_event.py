from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, CheckConstraint, Column, ForeignKey, Index, Integer, String
from sqlmodel import Field, SQLModel

from app.constants.order_status import ORDER_EVENT_TYPES

_EVENT_TYPE_CHECK = "event_type IN ({})".format(", ".join(f"'{t}'" for t in ORDER_EVENT_TYPES))


class OrderEvent(SQLModel, table=True):
    """One row per status change or rider assignment; read back as the tracking timeline."""

    __tablename__ = "order_event"
    __table_args__ = (
        CheckConstraint(_EVENT_TYPE_CHECK, name="ck_order_event_event_type"),
        Index("ix_order_event_order_id_created_at", "order_id", "created_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: int = Field(
        sa_column=Column(Integer, ForeignKey("order.id", ondelete="CASCADE"), nullable=False)
    )

    # an OrderStatus value, or "rider_assigned"
    event_type: str = Field(sa_column=Column(String(32), nullable=False))
    label: str

    # e.g. {"reason": ...} on cancel, {"rider_id": ...} on assignment
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: str = Field(default="system")  # "<role>:<user id>" or "system"
