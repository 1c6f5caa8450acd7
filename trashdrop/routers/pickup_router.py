"""
픽업 요청 및 봉투 API 라우터

- POST /pickups: 픽업 요청
- GET /pickups: 내 픽업 요청 목록 (status 필터)
- GET /pickups/{request_id}: 픽업 요청 상세
- PATCH /pickups/{request_id}/status: 상태 변경 (완료 시 포인트 적립)
- POST /pickups/{request_id}/bags: 봉투 등록 (봉투당 포인트 적립)
- GET /pickups/{request_id}/bags: 등록된 봉투 목록
- GET /pickups/bags/{bag_id}/verify: 봉투 코드 확인
- POST /pickups/schedule: 정기 픽업 등록
- GET /pickups/scheduled: 정기 픽업 목록 (다가오는 픽업 날짜 포함)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from trashdrop.core.security import get_current_user
from trashdrop.deps import get_pickup_service
from trashdrop.schemas.pickup import (
    BagListResponse,
    BagRegisterRequest,
    BagResponse,
    BagVerifyResponse,
    PickupListResponse,
    PickupRequestCreate,
    PickupRequestResponse,
    PickupScheduleCreate,
    PickupScheduleListResponse,
    PickupScheduleResponse,
    PickupStatusUpdate,
)
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.pickup_service import PickupService

router = APIRouter(prefix="/pickups", tags=["pickups"])


@router.post("", response_model=PickupRequestResponse, status_code=status.HTTP_201_CREATED)
def create_pickup(
    request: PickupRequestCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> PickupRequestResponse:
    """
    픽업 요청 생성

    location_id 를 지정하면 저장된 위치의 주소와 좌표를 사용합니다.

    HTTP Status:
        201: 생성됨
        404: 위치가 없거나 내 위치가 아님
        422: 입력 검증 실패
    """
    return pickup_service.create_request(current_user.id, request)


@router.get("", response_model=PickupListResponse)
def list_pickups(
    status_filter: Optional[str] = Query(None, alias="status", description="상태 필터"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> PickupListResponse:
    return pickup_service.list_requests(current_user.id, status_filter)


@router.get("/bags/{bag_id}/verify", response_model=BagVerifyResponse)
def verify_bag(
    bag_id: str = Path(..., description="봉투 코드"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> BagVerifyResponse:
    return pickup_service.verify_bag(bag_id)


@router.post(
    "/schedule", response_model=PickupScheduleResponse, status_code=status.HTTP_201_CREATED
)
def schedule_recurring_pickup(
    request: PickupScheduleCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> PickupScheduleResponse:
    """
    정기 픽업 등록 (weekly | biweekly | monthly)

    HTTP Status:
        201: 등록됨 (next_pickup_dates 포함)
        404: 위치가 없거나 내 위치가 아님
        422: start_date 가 과거이거나 입력 검증 실패
    """
    return pickup_service.schedule_recurring(current_user.id, request)


@router.get("/scheduled", response_model=PickupScheduleListResponse)
def list_scheduled_pickups(
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> PickupScheduleListResponse:
    return pickup_service.list_scheduled(current_user)


@router.get("/{request_id}", response_model=PickupRequestResponse)
def get_pickup(
    request_id: str = Path(..., description="픽업 요청 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> PickupRequestResponse:
    return pickup_service.get_request(
        request_id, current_user.id, is_staff=current_user.is_collector
    )


@router.patch("/{request_id}/status", response_model=PickupRequestResponse)
def update_pickup_status(
    request: PickupStatusUpdate,
    request_id: str = Path(..., description="픽업 요청 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> PickupRequestResponse:
    """
    픽업 상태 변경

    pending -> accepted | cancelled, accepted -> in_progress | cancelled,
    in_progress -> completed. 일반 사용자는 취소만 가능합니다.
    completed 로 변경되면 폐기물 종류와 봉투 수에 따른 포인트가 한 번만 적립됩니다.

    HTTP Status:
        200: 변경됨 (완료 시 points_awarded 포함)
        400: 허용되지 않는 상태 변경 (PICKUP_001)
        403: 권한 없음
    """
    return pickup_service.update_status(request_id, request.status, current_user)


@router.post("/{request_id}/bags", response_model=BagResponse, status_code=status.HTTP_201_CREATED)
def register_bag(
    request: BagRegisterRequest,
    request_id: str = Path(..., description="픽업 요청 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> BagResponse:
    """봉투 등록 - 봉투 코드는 전역에서 유일하며 봉투 1개 분량의 포인트가 적립됩니다."""
    return pickup_service.register_bag(
        request_id, current_user.id, request.bag_id, request.bag_type
    )


@router.get("/{request_id}/bags", response_model=BagListResponse)
def list_bags(
    request_id: str = Path(..., description="픽업 요청 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    pickup_service: PickupService = Depends(get_pickup_service),
) -> BagListResponse:
    return pickup_service.list_bags(
        request_id, current_user.id, is_staff=current_user.is_collector
    )
