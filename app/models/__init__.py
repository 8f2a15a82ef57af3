from app.models.user import User
from app.models.restaurant import Restaurant
from app.models.address import Address
from app.models.menu_item import MenuItem
from app.models.cart import Cart, CartItem
from app.models.order_item import OrderItem
from app.models.order import Order
from app.models.order_event import OrderEvent
from app.models.order_sequence import OrderSequence
from app.models.notifications import Notification

# add ALL models here
