from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.config import settings
from app.database import get_session
from app.dependencies.roles import require_customer
from app.models.cart import Cart, CartItem
from app.models.menu_item import MenuItem
from app.models.restaurant import Restaurant
from app.models.user import User
from app.schemas.cart_schemas import CartAddRequest, CartUpdateRequest

router = APIRouter()


def _get_cart(session: Session, user_id: int) -> Cart | None:
    return session.exec(select(Cart).where(Cart.user_id == user_id)).first()


def _get_own_item(session: Session, item_id: int, user_id: int) -> CartItem:
    item = session.get(CartItem, item_id)

    if not item or not item.cart or item.cart.user_id != user_id:
        raise HTTPException(404, "Cart item not found")

    return item


def _drop_cart_if_empty(session: Session, cart: Cart) -> bool:
    session.refresh(cart)
    if cart.items:
        return False
    session.delete(cart)
    session.commit()
    return True


# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    menu_item = session.get(MenuItem, data.menu_item_id)
    if not menu_item:
        raise HTTPException(status_code=404, detail="Menu item not found")

    if not menu_item.is_available:
        raise HTTPException(status_code=400, detail=f"{menu_item.name} is currently unavailable")

    restaurant = session.get(Restaurant, menu_item.restaurant_id)
    if not restaurant or not restaurant.is_active or not restaurant.is_accepting_orders:
        raise HTTPException(status_code=400, detail="Restaurant is not accepting orders")

    cart = _get_cart(session, current_user.id)

    # a cart only ever holds one restaurant's food
    if cart and cart.restaurant_id != menu_item.restaurant_id:
        raise HTTPException(
            status_code=400,
            detail="Your cart has items from another restaurant. Clear the cart to order from here.",
        )

    if not cart:
        cart = Cart(user_id=current_user.id, restaurant_id=menu_item.restaurant_id)
        session.add(cart)
        session.flush()

    existing_item = session.exec(
        select(CartItem).where(
            CartItem.cart_id == cart.id,
            CartItem.menu_item_id == menu_item.id,
        )
    ).first()

    cart.updated_at = datetime.utcnow()
    session.add(cart)

    if existing_item:
        existing_item.quantity += data.quantity
        session.add(existing_item)
        session.commit()
        session.refresh(existing_item)
        return {"message": "Cart updated", "item": existing_item}

    new_item = CartItem(
        cart_id=cart.id,
        menu_item_id=menu_item.id,
        quantity=data.quantity,
        price=menu_item.price,
    )

    session.add(new_item)
    session.commit()
    session.refresh(new_item)

    return {"message": "Added to cart", "item": new_item}


# View Cart

@router.get("")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    cart = _get_cart(session, current_user.id)

    if not cart:
        return {
            "restaurant_id": None,
            "items": [],
            "summary": {"subtotal": Decimal("0.00"), "delivery_fee": Decimal("0.00"), "total": Decimal("0.00")},
        }

    rows = session.exec(
        select(CartItem, MenuItem)
        .join(MenuItem, CartItem.menu_item_id == MenuItem.id)
        .where(CartItem.cart_id == cart.id)
        .order_by(CartItem.id)
    ).all()

    items_response = []
    subtotal = Decimal("0.00")

    for cart_item, menu_item in rows:
        line_total = cart_item.price * cart_item.quantity
        subtotal += line_total

        items_response.append({
            "item_id": cart_item.id,
            "menu_item_id": menu_item.id,
            "name": menu_item.name,
            "price": cart_item.price,
            "quantity": cart_item.quantity,
            "is_available": menu_item.is_available,
            "total": line_total,
        })

    delivery_fee = settings.DELIVERY_FEE if items_response else Decimal("0.00")

    return {
        "restaurant_id": cart.restaurant_id,
        "items": items_response,
        "summary": {
            "subtotal": subtotal,
            "delivery_fee": delivery_fee,
            "total": subtotal + delivery_fee,
        },
    }


# Update Cart

@router.put("/update/{item_id}")
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    item = _get_own_item(session, item_id, current_user.id)
    cart = item.cart

    if data.quantity <= 0:
        session.delete(item)
        session.commit()
        _drop_cart_if_empty(session, cart)
        return {"message": "Item removed"}

    item.quantity = data.quantity
    session.add(item)
    session.commit()
    session.refresh(item)

    return {"message": "Quantity updated", "item": item}


# Remove Cart

@router.delete("/remove/{item_id}")
def remove_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    item = _get_own_item(session, item_id, current_user.id)
    cart = item.cart

    session.delete(item)
    session.commit()
    _drop_cart_if_empty(session, cart)

    return {"message": "Item removed from cart"}


# Clear Cart

def clear_cart(session: Session, user_id: int) -> None:
    cart = _get_cart(session, user_id)
    if cart:
        session.delete(cart)
        session.commit()


@router.delete("/clear")
def clear_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    clear_cart(session, current_user.id)
    return {"message": "Cart cleared"}
