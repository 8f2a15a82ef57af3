from sqlmodel import SQLModel, Field


class OrderSequence(SQLModel, table=True):
    """Per-day counter behind ORD-YYYYMMDD-NNN order numbers."""

    __tablename__ = "order_sequence"
    day: str = Field(primary_key=True, max_length=8)  # YYYYMMDD
    last_value: int = Field(default=0)
