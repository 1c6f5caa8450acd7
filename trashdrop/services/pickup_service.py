import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from trashdrop.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    ConflictError,
    NotFoundError,
    RecordNotFoundError,
    ValidationError,
)
from trashdrop.models.pickup import PickupFrequencyEnum, PickupStatusEnum
from trashdrop.repositories.location_repository import LocationRepository
from trashdrop.repositories.pickup_repository import PickupRepository
from trashdrop.schemas.pickup import (
    BagListResponse,
    BagResponse,
    BagVerifyResponse,
    PickupListResponse,
    PickupRequestCreate,
    PickupRequestResponse,
    PickupScheduleCreate,
    PickupScheduleListResponse,
    PickupScheduleResponse,
)
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.accrual_rules import accrual_for, normalize_category, reason_for
from trashdrop.services.point_service import PointService
from trashdrop.utils.date_utils import add_months, utcnow

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[PickupStatusEnum, Set[PickupStatusEnum]] = {
    PickupStatusEnum.PENDING: {PickupStatusEnum.ACCEPTED, PickupStatusEnum.CANCELLED},
    PickupStatusEnum.ACCEPTED: {PickupStatusEnum.IN_PROGRESS, PickupStatusEnum.CANCELLED},
    PickupStatusEnum.IN_PROGRESS: {PickupStatusEnum.COMPLETED},
    PickupStatusEnum.COMPLETED: set(),
    PickupStatusEnum.CANCELLED: set(),
}


def _parse_status(status: str) -> PickupStatusEnum:
    try:
        return PickupStatusEnum(status)
    except ValueError:
        raise ValidationError(f"Invalid pickup status: {status}")


FREQUENCY_DAYS = {PickupFrequencyEnum.WEEKLY: 7, PickupFrequencyEnum.BIWEEKLY: 14}


def upcoming_dates(
    start: date, frequency: PickupFrequencyEnum, today: date, count: int
) -> List[date]:
    """today 이후(당일 포함) 정기 픽업 날짜 count 개. monthly 는 start 의 일자를 기준으로 말일 보정"""
    if frequency in FREQUENCY_DAYS:
        step = FREQUENCY_DAYS[frequency]
        skipped = max(0, -(-(today - start).days // step))
        first = start + timedelta(days=skipped * step)
        return [first + timedelta(days=i * step) for i in range(count)]

    months = 0
    while add_months(start, months) < today:
        months += 1
    return [add_months(start, months + i) for i in range(count)]


class PickupService:
    """픽업 요청 및 봉투 등록

    픽업 완료와 봉투 등록은 적립 규칙(accrual_for)에 따라 포인트를 지급하며,
    ref_id(pickup_<id>, bag_<id>)로 중복 지급을 막습니다. 지급은 PointService.award_points
    를 commit=False 로 호출해 상태 변경/봉투 기록과 같은 트랜잭션에 묶습니다.
    """

    def __init__(
        self,
        db: Session,
        point_service: Optional[PointService] = None,
        schedule_preview_count: int = 4,
    ):
        self.db = db
        self.schedule_preview_count = schedule_preview_count
        self.pickup_repo = PickupRepository(db)
        self.location_repo = LocationRepository(db)
        self.point_service = point_service or PointService(db)

    def _resolve_address(self, user_id: str, request):
        """(address, latitude, longitude) - 저장된 위치가 있으면 그 위치의 값"""
        if request.location_id:
            location = self.location_repo.get_for_user(request.location_id, user_id)
            if location is None:
                raise RecordNotFoundError(
                    f"Location not found: {request.location_id}",
                    details={"location_id": request.location_id},
                )
            return (
                location.address,
                location.coordinates.latitude,
                location.coordinates.longitude,
            )

        if not request.address:
            raise ValidationError("address is required when no location_id is given")
        latitude = request.coordinates.latitude if request.coordinates else None
        longitude = request.coordinates.longitude if request.coordinates else None
        return request.address, latitude, longitude

    def create_request(
        self, user_id: str, request: PickupRequestCreate
    ) -> PickupRequestResponse:
        address, latitude, longitude = self._resolve_address(user_id, request)

        pickup = self.pickup_repo.create_request(
            user_id=user_id,
            location_id=request.location_id,
            address=address,
            latitude=latitude,
            longitude=longitude,
            waste_type=normalize_category(request.waste_type),
            bag_count=request.bag_count,
            fee=request.fee,
            special_instructions=request.special_instructions,
        )
        logger.info(f"Pickup request {pickup.id} created by user {user_id}")
        return pickup

    def list_requests(self, user_id: str, status: Optional[str] = None) -> PickupListResponse:
        status_filter = _parse_status(status) if status else None
        requests = self.pickup_repo.list_for_user(user_id, status_filter)
        return PickupListResponse(requests=requests, total_count=len(requests))

    def get_request(
        self, request_id: str, user_id: str, is_staff: bool = False
    ) -> PickupRequestResponse:
        """소유자만 조회 가능 (수거원/관리자는 전체 조회)"""
        pickup = self.pickup_repo.get_request(request_id)
        if pickup is None or (pickup.user_id != user_id and not is_staff):
            raise NotFoundError(f"Pickup request not found: {request_id}")
        return pickup

    def update_status(
        self, request_id: str, new_status: str, actor: AuthenticatedUser
    ) -> PickupRequestResponse:
        """
        상태 변경

        pending -> accepted | cancelled
        accepted -> in_progress | cancelled
        in_progress -> completed

        일반 사용자는 자신의 요청을 취소하는 것만 가능합니다. 완료 시 적립 포인트
        지급과 위치의 last_pickup_date 갱신이 상태 변경과 같은 트랜잭션에서 기록됩니다.
        """
        target = _parse_status(new_status)
        pickup = self.get_request(request_id, actor.id, is_staff=actor.is_collector)

        if not actor.is_collector and target != PickupStatusEnum.CANCELLED:
            raise AuthorizationError("Only collectors can move a pickup forward")

        current = PickupStatusEnum(pickup.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise BusinessLogicError(
                error_code="PICKUP_001",
                message=f"Cannot change pickup status from {current.value} to {target.value}",
                details={"from": current.value, "to": target.value},
            )

        now = utcnow()
        points_awarded = None
        try:
            updated = self.pickup_repo.update_status(
                request_id,
                target,
                collector_id=actor.id if target == PickupStatusEnum.ACCEPTED else None,
                accepted_at=now if target == PickupStatusEnum.ACCEPTED else None,
                completed_at=now if target == PickupStatusEnum.COMPLETED else None,
                commit=False,
            )

            if target == PickupStatusEnum.COMPLETED:
                points_awarded = accrual_for(pickup.waste_type, pickup.bag_count)
                self.point_service.award_points(
                    user_id=pickup.user_id,
                    points=points_awarded,
                    reason=reason_for(pickup.waste_type),
                    related_request_id=request_id,
                    ref_id=f"pickup_{request_id}",
                    commit=False,
                )
                if pickup.location_id:
                    self.location_repo.mark_picked_up(
                        pickup.location_id, pickup.user_id, now, commit=False
                    )

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to move pickup {request_id} to {target.value}: {str(e)}")
            raise

        logger.info(f"Pickup {request_id}: {current.value} -> {target.value}")
        return updated.model_copy(update={"points_awarded": points_awarded})

    def register_bag(
        self, request_id: str, user_id: str, bag_id: str, bag_type: str
    ) -> BagResponse:
        """봉투 등록 + 봉투 1개 분량 포인트 지급 (하나의 트랜잭션)"""
        pickup = self.get_request(request_id, user_id)
        if pickup.status == PickupStatusEnum.CANCELLED.value:
            raise BusinessLogicError(
                error_code="PICKUP_002",
                message="Cannot register bags on a cancelled pickup",
                details={"request_id": request_id},
            )
        if self.pickup_repo.get_bag(bag_id) is not None:
            raise ConflictError("Bag already registered", details={"bag_id": bag_id})

        category = normalize_category(bag_type)
        points = accrual_for(category, 1)
        try:
            bag = self.pickup_repo.add_bag(bag_id, request_id, category, commit=False)
            self.point_service.award_points(
                user_id=user_id,
                points=points,
                reason=reason_for(category),
                related_request_id=request_id,
                ref_id=f"bag_{bag_id}",
                commit=False,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to register bag {bag_id}: {str(e)}")
            raise

        logger.info(f"Bag {bag_id} registered on pickup {request_id} (+{points} points)")
        return bag.model_copy(update={"points_awarded": points})

    def list_bags(self, request_id: str, user_id: str, is_staff: bool = False) -> BagListResponse:
        self.get_request(request_id, user_id, is_staff=is_staff)
        bags = self.pickup_repo.list_bags(request_id)
        return BagListResponse(bags=bags, total_count=len(bags))

    def verify_bag(self, bag_id: str) -> BagVerifyResponse:
        bag = self.pickup_repo.get_bag(bag_id)
        return BagVerifyResponse(valid=bag is not None, bag=bag)

    def schedule_recurring(
        self, user_id: str, request: PickupScheduleCreate, today: Optional[date] = None
    ) -> PickupScheduleResponse:
        """정기 픽업 등록 - start_date 는 오늘 이후여야 함"""
        today = today or date.today()
        if request.start_date < today:
            raise ValidationError(
                "start_date must not be in the past",
                details={"start_date": request.start_date.isoformat(), "today": today.isoformat()},
            )
        address, latitude, longitude = self._resolve_address(user_id, request)

        schedule = self.pickup_repo.create_schedule(
            user_id=user_id,
            location_id=request.location_id,
            address=address,
            latitude=latitude,
            longitude=longitude,
            waste_type=normalize_category(request.waste_type),
            bag_count=request.bag_count,
            fee=request.fee,
            frequency=PickupFrequencyEnum(request.frequency),
            start_date=request.start_date,
        )
        logger.info(
            f"Recurring {request.frequency} pickup {schedule.id} scheduled by user {user_id}"
        )
        return self._with_upcoming(schedule, today)

    def list_scheduled(
        self, actor: AuthenticatedUser, today: Optional[date] = None
    ) -> PickupScheduleListResponse:
        """활성 정기 픽업 (수거원/관리자는 전체) - 가까운 픽업 날짜순"""
        today = today or date.today()
        schedules = self.pickup_repo.list_schedules(None if actor.is_collector else actor.id)
        schedules = [self._with_upcoming(schedule, today) for schedule in schedules]
        schedules.sort(key=lambda schedule: schedule.next_pickup_dates[0])
        return PickupScheduleListResponse(schedules=schedules, total_count=len(schedules))

    def _with_upcoming(self, schedule: PickupScheduleResponse, today: date) -> PickupScheduleResponse:
        dates = upcoming_dates(
            schedule.start_date,
            PickupFrequencyEnum(schedule.frequency),
            today,
            self.schedule_preview_count,
        )
        return schedule.model_copy(update={"next_pickup_dates": dates})
