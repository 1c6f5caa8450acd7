from datetime import date
from unittest.mock import patch

import pytest

from trashdrop.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    ConflictError,
    NotFoundError,
    RecordNotFoundError,
    ValidationError,
)
from trashdrop.repositories.location_repository import LocationRepository
from trashdrop.schemas.location import Coordinates, LocationCreate
from trashdrop.models.pickup import PickupFrequencyEnum
from trashdrop.schemas.pickup import PickupRequestCreate, PickupScheduleCreate
from trashdrop.services.pickup_service import PickupService, upcoming_dates
from trashdrop.services.point_service import PointService


@pytest.fixture
def pickup_service(db_session):
    return PickupService(db_session)


@pytest.fixture
def point_service(db_session):
    return PointService(db_session)


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


@pytest.fixture
def pickup(pickup_service, user, home):
    return pickup_service.create_request(
        user.id, PickupRequestCreate(location_id=home.id, waste_type="Plastic", bag_count=3)
    )


def advance(pickup_service, pickup_id, collector, *statuses):
    result = None
    for status in statuses:
        result = pickup_service.update_status(pickup_id, status, collector)
    return result


class TestCreateRequest:
    """픽업 요청 생성 테스트"""

    def test_uses_saved_location(self, pickup):
        assert pickup.status == "pending"
        assert pickup.address == "12 Oxford Street, Accra"
        assert pickup.latitude == 5.56
        assert pickup.waste_type == "plastic"

    def test_unknown_location(self, pickup_service, user):
        with pytest.raises(RecordNotFoundError):
            pickup_service.create_request(
                user.id, PickupRequestCreate(location_id="nope", waste_type="glass", bag_count=1)
            )

    def test_address_required_without_location(self, pickup_service, user):
        with pytest.raises(ValidationError):
            pickup_service.create_request(
                user.id, PickupRequestCreate(waste_type="glass", bag_count=1)
            )

    def test_free_form_address(self, pickup_service, user):
        pickup = pickup_service.create_request(
            user.id,
            PickupRequestCreate(address="Market stall 4", waste_type="glass", bag_count=1),
        )
        assert pickup.location_id is None
        assert pickup.latitude is None

    def test_list_filters_by_status(self, pickup_service, user, pickup):
        assert pickup_service.list_requests(user.id).total_count == 1
        assert pickup_service.list_requests(user.id, "completed").total_count == 0
        with pytest.raises(ValidationError):
            pickup_service.list_requests(user.id, "lost")


class TestStatusTransitions:
    """픽업 상태 변경 테스트"""

    def test_completion_awards_points_once(
        self, pickup_service, point_service, user, collector, pickup, db_session
    ):
        result = advance(pickup_service, pickup.id, collector, "accepted", "in_progress", "completed")

        assert result.status == "completed"
        assert result.points_awarded == 30  # 3 plastic bags
        assert result.collector_id == collector.id
        assert result.completed_at is not None
        assert point_service.get_balance(user.id) == 30
        assert point_service.get_balance(collector.id) == 0
        assert LocationRepository(db_session).get_for_user("loc-home", user.id).last_pickup_date

        with pytest.raises(BusinessLogicError):
            pickup_service.update_status(pickup.id, "completed", collector)
        assert point_service.get_balance(user.id) == 30

    def test_invalid_transition(self, pickup_service, collector, pickup):
        with pytest.raises(BusinessLogicError) as exc_info:
            pickup_service.update_status(pickup.id, "completed", collector)
        assert exc_info.value.error_code == "PICKUP_001"

    def test_owner_can_cancel(self, pickup_service, user, pickup):
        result = pickup_service.update_status(pickup.id, "cancelled", user)
        assert result.status == "cancelled"
        assert result.points_awarded is None

    def test_owner_cannot_accept(self, pickup_service, user, pickup):
        with pytest.raises(AuthorizationError):
            pickup_service.update_status(pickup.id, "accepted", user)

    def test_other_user_cannot_see_request(self, pickup_service, pickup):
        with pytest.raises(NotFoundError):
            pickup_service.get_request(pickup.id, "user-2")

    def test_award_failure_rolls_back_status(
        self, pickup_service, point_service, user, collector, pickup
    ):
        advance(pickup_service, pickup.id, collector, "accepted", "in_progress")

        with patch.object(
            pickup_service.point_service.points_repo, "add_transaction", side_effect=RuntimeError("db down")
        ):
            with pytest.raises(RuntimeError):
                pickup_service.update_status(pickup.id, "completed", collector)

        assert pickup_service.get_request(pickup.id, user.id).status == "in_progress"
        assert point_service.get_balance(user.id) == 0


class TestBags:
    """봉투 등록 테스트"""

    def test_register_bag_awards_one_bag(self, pickup_service, point_service, user, pickup):
        bag = pickup_service.register_bag(pickup.id, user.id, "BAG-0001", "hazardous")

        assert bag.points_awarded == 12
        assert bag.bag_type == "hazardous"
        assert point_service.get_balance(user.id) == 12
        assert pickup_service.verify_bag("BAG-0001").valid is True
        assert pickup_service.verify_bag("BAG-9999").valid is False
        assert pickup_service.list_bags(pickup.id, user.id).total_count == 1

    def test_bag_award_goes_through_ledger_without_own_commit(self, pickup_service, user, pickup):
        award = pickup_service.point_service.award_points
        with patch.object(
            pickup_service.point_service, "award_points", wraps=award
        ) as mock_award:
            pickup_service.register_bag(pickup.id, user.id, "BAG-0002", "glass")

        mock_award.assert_called_once()
        kwargs = mock_award.call_args.kwargs
        assert kwargs["points"] == 8
        assert kwargs["ref_id"] == "bag_BAG-0002"
        assert kwargs["commit"] is False
        assert pickup_service.point_service.get_balance(user.id) == 8

    def test_duplicate_bag(self, pickup_service, point_service, user, pickup):
        pickup_service.register_bag(pickup.id, user.id, "BAG-0001", "paper")

        with pytest.raises(ConflictError):
            pickup_service.register_bag(pickup.id, user.id, "BAG-0001", "paper")
        assert point_service.get_balance(user.id) == 5

    def test_cancelled_pickup_rejects_bags(self, pickup_service, user, pickup):
        pickup_service.update_status(pickup.id, "cancelled", user)

        with pytest.raises(BusinessLogicError) as exc_info:
            pickup_service.register_bag(pickup.id, user.id, "BAG-0001", "paper")
        assert exc_info.value.error_code == "PICKUP_002"


class TestUpcomingDates:
    """정기 픽업 날짜 계산 테스트"""

    def test_weekly_from_future_start(self):
        dates = upcoming_dates(date(2026, 3, 2), PickupFrequencyEnum.WEEKLY, date(2026, 3, 1), 3)

        assert dates == [date(2026, 3, 2), date(2026, 3, 9), date(2026, 3, 16)]

    def test_biweekly_skips_past_occurrences(self):
        dates = upcoming_dates(date(2026, 3, 2), PickupFrequencyEnum.BIWEEKLY, date(2026, 3, 20), 2)

        assert dates == [date(2026, 3, 30), date(2026, 4, 13)]

    def test_start_day_counts_as_upcoming(self):
        dates = upcoming_dates(date(2026, 3, 2), PickupFrequencyEnum.WEEKLY, date(2026, 3, 9), 1)

        assert dates == [date(2026, 3, 9)]

    def test_monthly_clamps_to_month_end(self):
        dates = upcoming_dates(date(2026, 1, 31), PickupFrequencyEnum.MONTHLY, date(2026, 2, 1), 3)

        assert dates == [date(2026, 2, 28), date(2026, 3, 31), date(2026, 4, 30)]


class TestRecurringPickups:
    """정기 픽업 등록/조회 테스트"""

    TODAY = date(2026, 5, 4)

    def _schedule(self, pickup_service, user_id, **overrides):
        body = {"location_id": "loc-home", "frequency": "weekly", "start_date": date(2026, 5, 6)}
        body.update(overrides)
        return pickup_service.schedule_recurring(
            user_id, PickupScheduleCreate(**body), today=self.TODAY
        )

    def test_schedule_uses_saved_location(self, pickup_service, user, home):
        schedule = self._schedule(pickup_service, user.id, waste_type="Glass", bag_count=2)

        assert schedule.address == home.address
        assert schedule.waste_type == "glass"
        assert schedule.active is True
        assert schedule.next_pickup_dates[:2] == [date(2026, 5, 6), date(2026, 5, 13)]
        assert len(schedule.next_pickup_dates) == pickup_service.schedule_preview_count

    def test_start_date_in_past(self, pickup_service, user, home):
        with pytest.raises(ValidationError):
            self._schedule(pickup_service, user.id, start_date=date(2026, 5, 3))

    def test_other_users_location(self, pickup_service, home):
        with pytest.raises(RecordNotFoundError):
            self._schedule(pickup_service, "user-2")

    def test_address_required_without_location(self, pickup_service, user):
        with pytest.raises(ValidationError):
            self._schedule(pickup_service, user.id, location_id=None)

    def test_list_sorted_by_next_date(self, pickup_service, user, collector, home):
        self._schedule(pickup_service, user.id, frequency="monthly", start_date=date(2026, 6, 1))
        self._schedule(pickup_service, user.id, frequency="weekly", start_date=date(2026, 5, 5))
        self._schedule(
            pickup_service,
            "user-2",
            location_id=None,
            address="Other street",
            start_date=date(2026, 5, 4),
        )

        mine = pickup_service.list_scheduled(user, today=self.TODAY)
        assert mine.total_count == 2
        assert [s.frequency for s in mine.schedules] == ["weekly", "monthly"]

        everyone = pickup_service.list_scheduled(collector, today=self.TODAY)
        assert everyone.total_count == 3
        assert everyone.schedules[0].user_id == "user-2"

    def test_list_rolls_forward_past_start(self, pickup_service, user, home):
        self._schedule(pickup_service, user.id, frequency="biweekly", start_date=date(2026, 5, 4))

        later = pickup_service.list_scheduled(user, today=date(2026, 5, 20))
        assert later.schedules[0].next_pickup_dates[0] == date(2026, 6, 1)
