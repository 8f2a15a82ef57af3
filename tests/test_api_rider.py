from decimal import Decimal

import pytest

from app.constants.order_status import OrderStatus, UserRole
from app.models.notifications import NotificationType
from app.services.notification_service import create_notification
from tests.helpers import auth_headers


@pytest.fixture
def rider(make):
    return make.user(UserRole.rider, name="Kiran")


def test_my_deliveries_lists_active_first(client, world, make, rider):
    done = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.delivered, rider=rider)
    active = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.out_for_delivery, rider=rider)
    make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready)

    body = client.get("/rider/orders", headers=auth_headers(rider)).json()

    assert [o["id"] for o in body["results"]] == [active.id, done.id]
    assert body["results"][0]["customer"]["name"] == "Asha"
    assert body["results"][0]["restaurant"]["name"] == "Spice Route"


def test_available_orders(client, world, make, rider):
    waiting = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready)
    make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready, rider=rider)

    body = client.get("/rider/orders/available", headers=auth_headers(rider)).json()

    assert [o["id"] for o in body["results"]] == [waiting.id]
    assert "customer" not in body["results"][0]


def test_rider_routes_are_for_riders(client, world):
    assert client.get("/rider/orders", headers=auth_headers(world.customer)).status_code == 403
    assert client.get("/rider/stats", headers=auth_headers(world.owner)).status_code == 403


def test_rider_stats_endpoint(client, world, make, rider):
    make.order(
        world.customer, world.restaurant, world.address,
        status=OrderStatus.delivered, rider=rider, rider_earning=Decimal("40.00"),
    )

    body = client.get("/rider/stats", headers=auth_headers(rider)).json()

    assert body["rider"]["name"] == "Kiran"
    assert body["stats"]["delivered_orders"] == 1
    assert Decimal(str(body["stats"]["total_earnings"])) == Decimal("40.00")


def test_pick_up_and_deliver(client, world, make, rider):
    order = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready, rider=rider)
    headers = auth_headers(rider)

    picked = client.put(f"/rider/orders/{order.id}/status", json={"status": "out_for_delivery"}, headers=headers)
    delivered = client.put(f"/rider/orders/{order.id}/status", json={"status": "delivered"}, headers=headers)

    assert picked.status_code == 200
    assert delivered.status_code == 200
    assert delivered.json()["order"]["status"] == "delivered"
    assert Decimal(str(delivered.json()["order"]["rider_earning"])) == Decimal("40.00")


def test_rider_cannot_set_kitchen_statuses(client, world, make, rider):
    order = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready, rider=rider)

    response = client.put(
        f"/rider/orders/{order.id}/status", json={"status": "preparing"}, headers=auth_headers(rider)
    )

    assert response.status_code == 400
    assert response.json()["detail"].endswith("delivered, out_for_delivery")


def test_rider_cannot_touch_other_riders_order(client, world, make, rider):
    stranger = make.user(UserRole.rider)
    order = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready, rider=rider)

    response = client.put(
        f"/rider/orders/{order.id}/status", json={"status": "out_for_delivery"}, headers=auth_headers(stranger)
    )

    assert response.status_code == 403


# ---------- notifications api ----------

def notify(session, user, message="hello"):
    return create_notification(
        session=session,
        user_id=user.id,
        user_role=user.role,
        type=NotificationType.order_placed,
        title="Order Placed",
        message=message,
        data={},
    )


def test_notification_inbox(client, session, world):
    first = notify(session, world.customer, "one")
    notify(session, world.customer, "two")
    notify(session, world.owner, "not yours")
    headers = auth_headers(world.customer)

    listing = client.get("/notifications", headers=headers).json()
    assert listing["total_items"] == 2
    assert client.get("/notifications/unread-count", headers=headers).json() == {"unread_count": 2}

    read = client.put(f"/notifications/{first.id}/read", headers=headers)
    assert read.json()["notification"]["read"] is True
    assert client.get("/notifications", params={"read": False}, headers=headers).json()["total_items"] == 1

    assert client.put("/notifications/read-all", headers=headers).json()["modified_count"] == 1
    assert client.get("/notifications/unread-count", headers=headers).json() == {"unread_count": 0}


def test_notification_delete(client, session, world):
    first = notify(session, world.customer)
    notify(session, world.customer)
    theirs = notify(session, world.owner)
    headers = auth_headers(world.customer)

    assert client.delete(f"/notifications/{theirs.id}", headers=headers).status_code == 404
    assert client.delete(f"/notifications/{first.id}", headers=headers).status_code == 200
    assert client.delete("/notifications", headers=headers).json()["deleted_count"] == 1
    assert client.get("/notifications/unread-count", headers=auth_headers(world.owner)).json() == {
        "unread_count": 1
    }
