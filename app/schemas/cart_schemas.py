from sqlmodel import SQLModel, Field

class CartAddRequest(SQLModel):
    menu_item_id: int
    quantity: int = Field(default=1, ge=1)

class CartUpdateRequest(SQLModel):
    quantity: int
