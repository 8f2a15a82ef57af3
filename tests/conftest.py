import os

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"

from datetime import datetime
from decimal import Decimal
from itertools import count
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

import app.models  # noqa: F401
from app.constants.order_status import OrderStatus, PaymentStatus, UserRole
from app.database import engine
from app.main import app as fastapi_app
from app.models.address import Address
from app.models.cart import Cart, CartItem
from app.models.menu_item import MenuItem
from app.models.order import Order
from app.models.restaurant import Restaurant
from app.models.user import User
from app.notifications.outbox import Outbox


@pytest.fixture(autouse=True)
def db():
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(db):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(db):
    with TestClient(fastapi_app) as client:
        yield client


@pytest.fixture
def outbox():
    return Outbox(session_factory=lambda: Session(engine))


class Factory:
    def __init__(self, session: Session):
        self.session = session
        self._seq = count(1)

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def user(self, role=UserRole.customer, name=None, is_active=True) -> User:
        n = next(self._seq)
        return self._save(User(
            name=name or f"{role.value} {n}",
            email=f"{role.value}{n}@example.com",
            phone=f"90000000{n:02d}",
            role=role,
            is_active=is_active,
        ))

    def restaurant(self, owner: User, **kwargs) -> Restaurant:
        kwargs.setdefault("name", "Spice Route")
        return self._save(Restaurant(owner_id=owner.id, phone="080-1234", address="MG Road", **kwargs))

    def address(self, user: User) -> Address:
        return self._save(Address(
            user_id=user.id,
            address_line="12 Lake View",
            city="Bengaluru",
            state="KA",
            zip_code="560001",
        ))

    def menu_item(self, restaurant: Restaurant, name="Masala Dosa", price="10.00", is_available=True) -> MenuItem:
        return self._save(MenuItem(
            restaurant_id=restaurant.id,
            name=name,
            price=Decimal(price),
            is_available=is_available,
        ))

    def cart(self, customer: User, restaurant: Restaurant, lines) -> Cart:
        """``lines`` is a list of (menu_item, quantity)."""
        cart = Cart(user_id=customer.id, restaurant_id=restaurant.id)
        self.session.add(cart)
        self.session.flush()
        for menu_item, quantity in lines:
            self.session.add(CartItem(
                cart_id=cart.id,
                menu_item_id=menu_item.id,
                quantity=quantity,
                price=menu_item.price,
            ))
        self.session.commit()
        self.session.refresh(cart)
        return cart

    def order(
        self,
        customer: User,
        restaurant: Restaurant,
        address: Address,
        status=OrderStatus.pending,
        rider: User | None = None,
        created_at: datetime | None = None,
        delivery_fee="50.00",
        subtotal="25.00",
        **kwargs,
    ) -> Order:
        n = next(self._seq)
        created_at = created_at or datetime.utcnow()
        return self._save(Order(
            customer_id=customer.id,
            restaurant_id=restaurant.id,
            address_id=address.id,
            rider_id=rider.id if rider else None,
            order_number=f"ORD-20260101-{n:03d}",
            status=status,
            subtotal=Decimal(subtotal),
            delivery_fee=Decimal(delivery_fee),
            total_amount=Decimal(subtotal) + Decimal(delivery_fee),
            payment_status=PaymentStatus.pending,
            created_at=created_at,
            updated_at=created_at,
            **kwargs,
        ))


@pytest.fixture
def make(session):
    return Factory(session)


@pytest.fixture
def world(make):
    """A customer with an address, and an open restaurant with two dishes."""
    customer = make.user(UserRole.customer, name="Asha")
    owner = make.user(UserRole.restaurant_owner, name="Ravi")
    restaurant = make.restaurant(owner)
    address = make.address(customer)
    item_a = make.menu_item(restaurant, name="Idli", price="10.00")
    item_b = make.menu_item(restaurant, name="Vada", price="5.00")

    return SimpleNamespace(
        customer=customer,
        owner=owner,
        restaurant=restaurant,
        address=address,
        item_a=item_a,
        item_b=item_b,
        fill_cart=lambda: make.cart(customer, restaurant, [(item_a, 2), (item_b, 1)]),
    )

