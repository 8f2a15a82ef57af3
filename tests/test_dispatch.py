from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlmodel import Session

from app.constants.order_status import OrderStatus, UserRole
from app.database import engine
from app.exceptions import NotFoundError
from app.models.order import Order
from app.services.order_store import (
    count_by_rider_and_statuses,
    find_oldest_unassigned_ready,
    update_order_if_unassigned,
)
from app.services.rider_service import (
    auto_assign_rider,
    drain_backlog,
    find_available_riders,
    get_rider_stats,
    pick_least_loaded,
)
from tests.helpers import reload


def ready_order(make, world, **kwargs):
    return make.order(world.customer, world.restaurant, world.address, status=OrderStatus.ready, **kwargs)


def busy_with(make, world, rider, count):
    for _ in range(count):
        make.order(
            world.customer, world.restaurant, world.address,
            status=OrderStatus.out_for_delivery, rider=rider,
        )


def test_available_means_active_and_idle(session, world, make):
    idle = make.user(UserRole.rider)
    busy = make.user(UserRole.rider)
    make.user(UserRole.rider, is_active=False)
    busy_with(make, world, busy, 1)
    # finished work does not count against a rider
    make.order(world.customer, world.restaurant, world.address, status=OrderStatus.delivered, rider=busy)
    make.order(world.customer, world.restaurant, world.address, status=OrderStatus.delivered, rider=idle)

    assert [r.id for r in find_available_riders(session)] == [idle.id]


def test_candidate_pool_is_capped(session, make):
    riders = [make.user(UserRole.rider) for _ in range(4)]

    assert [r.id for r in find_available_riders(session, limit=2)] == [r.id for r in riders[:2]]


def test_least_loaded_rider_wins():
    riders = [SimpleNamespace(id=1), SimpleNamespace(id=2), SimpleNamespace(id=3)]

    assert pick_least_loaded(riders, {1: 2, 2: 0, 3: 1}).id == 2


def test_least_loaded_ties_keep_first():
    riders = [SimpleNamespace(id=7), SimpleNamespace(id=3)]

    assert pick_least_loaded(riders, {7: 0, 3: 0}).id == 7


def test_assigns_rider_with_no_active_orders(session, world, make):
    loaded = make.user(UserRole.rider)
    idle = make.user(UserRole.rider)
    half = make.user(UserRole.rider)
    busy_with(make, world, loaded, 2)
    busy_with(make, world, half, 1)
    order = ready_order(make, world)

    result = auto_assign_rider(session, order.id)

    assert result.success
    assert result.rider_id == idle.id
    assert result.rider_name == idle.name
    assert reload(session, Order, order.id).rider_id == idle.id
    assert count_by_rider_and_statuses(session, idle.id) == 1


def test_assignment_is_idempotent(session, world, make):
    first = make.user(UserRole.rider)
    make.user(UserRole.rider)
    order = ready_order(make, world)

    one = auto_assign_rider(session, order.id)
    two = auto_assign_rider(session, order.id)

    assert one.rider_id == first.id and not one.already_assigned
    assert two.success and two.already_assigned
    assert two.rider_id == first.id
    assert reload(session, Order, order.id).rider_id == first.id


def test_assigned_rider_is_never_overwritten(session, world, make):
    holder = make.user(UserRole.rider)
    other = make.user(UserRole.rider)
    order = ready_order(make, world, rider=holder)

    assert update_order_if_unassigned(session, order.id, other.id) is False
    session.rollback()
    assert reload(session, Order, order.id).rider_id == holder.id


def test_concurrent_assignment_loses_cleanly(session, world, make):
    winner = make.user(UserRole.rider)
    loser = make.user(UserRole.rider)
    order = ready_order(make, world)

    with Session(engine) as other:
        assert update_order_if_unassigned(other, order.id, winner.id)
        other.commit()

    assert update_order_if_unassigned(session, order.id, loser.id) is False
    session.rollback()
    assert reload(session, Order, order.id).rider_id == winner.id


def test_order_must_be_ready(session, world, make):
    make.user(UserRole.rider)
    order = make.order(world.customer, world.restaurant, world.address, status=OrderStatus.preparing)

    result = auto_assign_rider(session, order.id)

    assert not result.success
    assert "preparing" in result.message
    assert reload(session, Order, order.id).rider_id is None


def test_no_riders_available(session, world, make):
    order = ready_order(make, world)

    result = auto_assign_rider(session, order.id)

    assert not result.success
    assert result.message == "No available riders at the moment. Please try again later."
    assert reload(session, Order, order.id).rider_id is None


def test_assign_unknown_order(session):
    with pytest.raises(NotFoundError):
        auto_assign_rider(session, 404)


def test_backlog_drains_oldest_first(session, world, make):
    make.user(UserRole.rider)
    make.user(UserRole.rider)
    base = datetime(2026, 5, 1, 12, 0)
    t1 = ready_order(make, world, created_at=base)
    t2 = ready_order(make, world, created_at=base + timedelta(minutes=5))
    t3 = ready_order(make, world, created_at=base + timedelta(minutes=10))

    assert [o.id for o in find_oldest_unassigned_ready(session, 3)] == [t1.id, t2.id, t3.id]

    results = drain_backlog(session, max_assignments=3)

    assert [r.success for r in results] == [True, True, False]
    assert reload(session, Order, t1.id).rider_id is not None
    assert reload(session, Order, t2.id).rider_id is not None
    assert reload(session, Order, t3.id).rider_id is None
    assert reload(session, Order, t1.id).rider_id != reload(session, Order, t2.id).rider_id


def test_backlog_default_takes_one(session, world, make):
    make.user(UserRole.rider)
    make.user(UserRole.rider)
    older = ready_order(make, world, created_at=datetime(2026, 5, 1, 9, 0))
    newer = ready_order(make, world, created_at=datetime(2026, 5, 1, 10, 0))

    [result] = drain_backlog(session)

    assert result.order_id == older.id and result.success
    assert reload(session, Order, newer.id).rider_id is None


def test_empty_backlog(session):
    assert drain_backlog(session, max_assignments=5) == []


def test_rider_stats(session, world, make):
    rider = make.user(UserRole.rider)
    now = datetime(2026, 6, 15, 18, 0)

    for delivered_at in (now - timedelta(hours=2), now - timedelta(days=3), datetime(2026, 5, 20, 12, 0)):
        make.order(
            world.customer, world.restaurant, world.address,
            status=OrderStatus.delivered, rider=rider,
            rider_earning=Decimal("40.00"), delivered_at=delivered_at,
        )
    make.order(world.customer, world.restaurant, world.address, status=OrderStatus.out_for_delivery, rider=rider)

    stats = get_rider_stats(session, rider.id, now=now)

    assert stats.rider.id == rider.id
    assert stats.stats.total_orders == 4
    assert stats.stats.delivered_orders == 3
    assert stats.stats.active_orders == 1
    assert stats.stats.completion_rate == Decimal("75.00")
    assert stats.stats.total_earnings == Decimal("120.00")
    assert stats.stats.today_earnings == Decimal("40.00")
    assert stats.stats.this_month_earnings == Decimal("80.00")
    assert stats.stats.average_earning_per_delivery == Decimal("40.00")


def test_rider_stats_for_new_rider(session, make):
    rider = make.user(UserRole.rider)

    stats = get_rider_stats(session, rider.id)

    assert stats.stats.total_orders == 0
    assert stats.stats.completion_rate == Decimal("0.00")
    assert stats.stats.average_earning_per_delivery == Decimal("0.00")


def test_rider_stats_for_non_rider(session, world):
    with pytest.raises(NotFoundError):
        get_rider_stats(session, world.customer.id)
