from datetime import date

import pytest

from trashdrop.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    RecordNotFoundError,
)
from trashdrop.repositories.location_repository import LocationRepository
from trashdrop.schemas.bag_order import BagOrderCreate, BagOrderItem
from trashdrop.schemas.location import Coordinates, LocationCreate
from trashdrop.schemas.pickup import PickupRequestCreate
from trashdrop.services.bag_order_service import BagOrderService
from trashdrop.services.pickup_service import PickupService


@pytest.fixture
def bag_order_service(db_session):
    return BagOrderService(db_session, delivery_days=3)


@pytest.fixture
def home(db_session, user):
    return LocationRepository(db_session).create_location(
        user.id,
        LocationCreate(
            id="loc-home",
            name="Home",
            address="12 Oxford Street, Accra",
            coordinates=Coordinates(latitude=5.56, longitude=-0.18),
        ),
    )


def order(service, user_id, *items, location_id="loc-home"):
    return service.order_bags(
        user_id,
        BagOrderCreate(
            location_id=location_id,
            items=[BagOrderItem(bag_type=bag_type, quantity=qty) for bag_type, qty in items],
        ),
        today=date(2026, 5, 4),
    )


class TestOrderBags:
    """봉투 주문 테스트"""

    def test_order_ships_to_saved_location(self, bag_order_service, user, home):
        placed = order(bag_order_service, user.id, ("Plastic", 5), ("general", 10))

        assert placed.status == "pending"
        assert placed.delivery_address == home.address
        assert placed.quantity == 15
        assert placed.tracking_id.startswith("TD-")
        assert placed.estimated_delivery == date(2026, 5, 7)
        assert {item.bag_type for item in placed.items} == {"plastic", "general"}

    def test_unknown_types_merge_into_general(self, bag_order_service, user, home):
        placed = order(bag_order_service, user.id, ("general", 2), ("mystery", 3))

        assert [(item.bag_type, item.quantity) for item in placed.items] == [("general", 5)]

    def test_location_must_be_mine(self, bag_order_service, home):
        with pytest.raises(RecordNotFoundError):
            order(bag_order_service, "user-2", ("general", 1))

    def test_tracking_ids_are_unique(self, bag_order_service, user, home):
        first = order(bag_order_service, user.id, ("general", 1))
        second = order(bag_order_service, user.id, ("general", 1))

        assert first.tracking_id != second.tracking_id
        assert bag_order_service.list_orders(user.id).total_count == 2


class TestTracking:
    """운송장 조회 및 상태 변경 테스트"""

    def test_owner_and_admin_can_track(self, bag_order_service, user, admin, collector, home):
        placed = order(bag_order_service, user.id, ("general", 1))

        assert bag_order_service.get_by_tracking(placed.tracking_id, user).id == placed.id
        assert bag_order_service.get_by_tracking(placed.tracking_id, admin).id == placed.id
        with pytest.raises(NotFoundError):
            bag_order_service.get_by_tracking(placed.tracking_id, collector)

    def test_admin_ships_and_delivers(self, bag_order_service, user, admin, home):
        placed = order(bag_order_service, user.id, ("general", 1))

        bag_order_service.update_status(placed.tracking_id, "shipped", admin)
        delivered = bag_order_service.update_status(placed.tracking_id, "delivered", admin)

        assert delivered.status == "delivered"

    def test_owner_can_only_cancel(self, bag_order_service, user, home):
        placed = order(bag_order_service, user.id, ("general", 1))

        with pytest.raises(AuthorizationError):
            bag_order_service.update_status(placed.tracking_id, "shipped", user)
        cancelled = bag_order_service.update_status(placed.tracking_id, "cancelled", user)
        assert cancelled.status == "cancelled"

    def test_shipped_order_cannot_be_cancelled(self, bag_order_service, user, admin, home):
        placed = order(bag_order_service, user.id, ("general", 1))
        bag_order_service.update_status(placed.tracking_id, "shipped", admin)

        with pytest.raises(BusinessLogicError) as exc_info:
            bag_order_service.update_status(placed.tracking_id, "cancelled", user)
        assert exc_info.value.error_code == "BAG_001"


class TestBagCount:
    """남은 봉투 수 테스트"""

    def test_count_subtracts_registered_bags(self, db_session, bag_order_service, user, home):
        order(bag_order_service, user.id, ("plastic", 4), ("general", 6))
        cancelled = order(bag_order_service, user.id, ("general", 20))
        bag_order_service.update_status(cancelled.tracking_id, "cancelled", user)

        pickup_service = PickupService(db_session)
        pickup = pickup_service.create_request(
            user.id, PickupRequestCreate(location_id=home.id, waste_type="plastic", bag_count=1)
        )
        pickup_service.register_bag(pickup.id, user.id, "BAG-1", "plastic")

        count = bag_order_service.get_bag_count(user.id)
        assert count.ordered == 10
        assert count.used == 1
        assert count.available == 9
        assert count.available_by_type == {"plastic": 3, "general": 6}

    def test_count_never_negative(self, db_session, bag_order_service, user, home):
        pickup_service = PickupService(db_session)
        pickup = pickup_service.create_request(
            user.id, PickupRequestCreate(location_id=home.id, waste_type="paper", bag_count=2)
        )
        pickup_service.register_bag(pickup.id, user.id, "BAG-1", "paper")

        count = bag_order_service.get_bag_count(user.id)
        assert count.ordered == 0
        assert count.available == 0


class TestUserBags:
    """내 봉투 / 수거원 배정 봉투 테스트"""

    def test_owner_and_assigned_collector_see_bags(
        self, db_session, bag_order_service, user, collector, home
    ):
        pickup_service = PickupService(db_session)
        pickup = pickup_service.create_request(
            user.id, PickupRequestCreate(location_id=home.id, waste_type="glass", bag_count=1)
        )
        pickup_service.register_bag(pickup.id, user.id, "BAG-1", "glass")

        assert bag_order_service.list_user_bags(user).total_count == 1
        assert bag_order_service.list_user_bags(collector).total_count == 0

        pickup_service.update_status(pickup.id, "accepted", collector)
        bags = bag_order_service.list_user_bags(collector)
        assert [bag.id for bag in bags.bags] == ["BAG-1"]
