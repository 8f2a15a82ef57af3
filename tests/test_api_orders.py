from decimal import Decimal

import pytest
from sqlmodel import select

from app.constants.order_status import OrderStatus, UserRole
from app.models.cart import Cart
from app.models.notifications import Notification, NotificationType
from app.models.order import Order
from tests.helpers import auth_headers, reload


@pytest.fixture
def rider(make):
    return make.user(UserRole.rider, name="Kiran")


def place(client, world, **extra):
    world.fill_cart()
    return client.post(
        "/orders",
        json={"address_id": world.address.id, **extra},
        headers=auth_headers(world.customer),
    )


def test_place_order(client, session, world):
    response = place(client, world, special_instructions="Ring twice")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["order_number"].startswith("ORD-")
    assert Decimal(str(body["subtotal"])) == Decimal("25.00")
    assert Decimal(str(body["total_amount"])) == Decimal("75.00")
    assert body["track_order_url"] == f"/orders/{body['order_id']}/track"
    assert [(i["item_name"], i["quantity"]) for i in body["items"]] == [("Idli", 2), ("Vada", 1)]

    session.expire_all()
    assert session.exec(select(Cart).where(Cart.user_id == world.customer.id)).first() is None
    # fanout ran after the response
    types = {n.type for n in session.exec(select(Notification)).all()}
    assert types == {NotificationType.order_placed, NotificationType.new_order}


def test_place_order_with_empty_cart(client, world):
    response = client.post(
        "/orders", json={"address_id": world.address.id}, headers=auth_headers(world.customer)
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Cart is empty. Add items to cart before placing order."}


def test_only_customers_place_orders(client, world):
    response = client.post(
        "/orders", json={"address_id": world.address.id}, headers=auth_headers(world.owner)
    )

    assert response.status_code == 403


def test_requires_login(client):
    assert client.get("/orders").status_code == 401


def test_rejects_bad_token(client):
    response = client.get("/orders", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_customer_order_history(client, world, make):
    make.order(world.customer, world.restaurant, world.address)
    make.order(world.customer, world.restaurant, world.address, status=OrderStatus.cancelled)
    stranger = make.user(UserRole.customer)
    make.order(stranger, world.restaurant, make.address(stranger))

    everything = client.get("/orders", headers=auth_headers(world.customer)).json()
    cancelled = client.get(
        "/orders", params={"status": "cancelled"}, headers=auth_headers(world.customer)
    ).json()

    assert everything["total_items"] == 2
    assert cancelled["total_items"] == 1
    assert cancelled["results"][0]["status"] == "cancelled"


def test_restaurant_orders(client, world, make):
    make.order(world.customer, world.restaurant, world.address)
    other_owner = make.user(UserRole.restaurant_owner)
    other_restaurant = make.restaurant(other_owner, name="Other Place")
    make.order(world.customer, other_restaurant, world.address)

    mine = client.get("/orders/restaurant/my-orders", headers=auth_headers(world.owner)).json()
    theirs = client.get("/orders/restaurant/my-orders", headers=auth_headers(other_owner)).json()

    assert mine["total_items"] == 1
    assert mine["results"][0]["restaurant_id"] == world.restaurant.id
    assert theirs["total_items"] == 1


def test_owner_without_restaurants_sees_nothing(client, make):
    owner = make.user(UserRole.restaurant_owner)

    body = client.get("/orders/restaurant/my-orders", headers=auth_headers(owner)).json()

    assert body["total_items"] == 0
    assert body["results"] == []


def test_order_details_visibility(client, world, make):
    response = place(client, world)
    order_id = response.json()["order_id"]
    stranger = make.user(UserRole.customer)

    mine = client.get(f"/orders/{order_id}", headers=auth_headers(world.customer))
    owners = client.get(f"/orders/{order_id}", headers=auth_headers(world.owner))
    theirs = client.get(f"/orders/{order_id}", headers=auth_headers(stranger))
    missing = client.get("/orders/999", headers=auth_headers(world.customer))

    assert mine.status_code == 200
    assert len(mine.json()["items"]) == 2
    assert owners.status_code == 200
    assert theirs.status_code == 403
    assert missing.status_code == 404


def test_status_flow_over_http(client, session, world, rider):
    order_id = place(client, world).json()["order_id"]
    owner = auth_headers(world.owner)

    for target in ("confirmed", "preparing", "ready"):
        response = client.put(f"/orders/{order_id}/status", json={"status": target}, headers=owner)
        assert response.status_code == 200, response.json()
        assert response.json()["order"]["status"] == target

    # reaching ready dispatched the idle rider
    assert reload(session, Order, order_id).rider_id == rider.id

    response = client.put(
        f"/orders/{order_id}/status",
        json={"status": "out_for_delivery", "estimated_delivery_time": 20},
        headers=auth_headers(rider),
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Order status updated from ready to out_for_delivery"

    response = client.put(
        f"/orders/{order_id}/status", json={"status": "delivered"}, headers=auth_headers(rider)
    )
    assert response.status_code == 200

    order = reload(session, Order, order_id)
    assert order.status == OrderStatus.delivered
    assert order.rider_earning == Decimal("40.00")
    assert order.total_amount == order.subtotal + order.delivery_fee


def test_skipping_a_step_over_http(client, world):
    order_id = place(client, world).json()["order_id"]

    response = client.put(
        f"/orders/{order_id}/status", json={"status": "preparing"}, headers=auth_headers(world.owner)
    )

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Cannot change status from pending to preparing")


def test_unknown_status_is_rejected(client, world):
    order_id = place(client, world).json()["order_id"]

    response = client.put(
        f"/orders/{order_id}/status", json={"status": "teleported"}, headers=auth_headers(world.owner)
    )

    assert response.status_code == 422


def test_customers_cannot_use_status_endpoint(client, world):
    order_id = place(client, world).json()["order_id"]

    response = client.put(
        f"/orders/{order_id}/status", json={"status": "cancelled"}, headers=auth_headers(world.customer)
    )

    assert response.status_code == 403


def test_cancel_with_and_without_reason(client, world):
    first = place(client, world).json()["order_id"]
    second = place(client, world).json()["order_id"]
    headers = auth_headers(world.customer)

    with_reason = client.put(f"/orders/{first}/cancel", json={"reason": "Too slow"}, headers=headers)
    without = client.put(f"/orders/{second}/cancel", headers=headers)

    assert with_reason.status_code == 200
    assert with_reason.json()["order"]["cancellation_reason"] == "Too slow"
    assert without.status_code == 200
    assert without.json()["order"]["status"] == "cancelled"

    again = client.put(f"/orders/{first}/cancel", headers=headers)
    assert again.status_code == 400


def test_track_order(client, world):
    order_id = place(client, world).json()["order_id"]
    client.put(f"/orders/{order_id}/status", json={"status": "confirmed"}, headers=auth_headers(world.owner))

    body = client.get(f"/orders/{order_id}/track", headers=auth_headers(world.customer)).json()

    assert body["order"]["status"] == "confirmed"
    assert body["order"]["restaurant"]["name"] == "Spice Route"
    assert body["status_timeline"]["pending"] is not None
    assert body["status_timeline"]["confirmed"] is not None
    assert body["status_timeline"]["delivered"] is None


def test_root_and_health(client):
    assert "order_endpoints" in client.get("/").json()

    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["database"] == "ok"
