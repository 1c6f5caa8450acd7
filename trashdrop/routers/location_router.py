"""
사용자 위치 API 라우터

오프라인 클라이언트는 POST /locations/sync 로 쌓아둔 변경을 한 번에 보낼 수 있습니다.
id 는 클라이언트가 생성하며, 같은 id 로 다시 보낸 생성 요청은 기존 레코드를 반환합니다.
"""

from fastapi import APIRouter, Depends, Path, status

from trashdrop.core.security import get_current_user
from trashdrop.deps import get_location_service
from trashdrop.schemas.location import (
    DeleteResultResponse,
    LocationCreate,
    LocationListResult,
    LocationRecord,
    LocationUpdate,
)
from trashdrop.schemas.sync import LocationSyncRequest, LocationSyncResponse
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.location_service import LocationService

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=LocationListResult)
def list_locations(
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> LocationListResult:
    """내 위치 목록 (기본 위치 먼저)"""
    return LocationListResult(
        data=location_service.list_locations(current_user.id), offline=False
    )


@router.post("/sync", response_model=LocationSyncResponse)
def sync_locations(
    request: LocationSyncRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> LocationSyncResponse:
    """
    오프라인 변경 일괄 반영

    같은 위치에 대한 변경은 seq 순서대로 합쳐서 반영하고(create+delete 는 서버에
    도달하지 않음), set_default 는 가장 마지막 것만 적용합니다. updated_at 이 서버보다
    오래된 update 는 충돌로 보고되고 반영되지 않습니다.

    Returns:
        LocationSyncResponse: 동기화 보고서 + 동기화 후 위치 목록
    """
    return location_service.sync_batch(current_user.id, request)


@router.get("/{location_id}", response_model=LocationRecord)
def get_location(
    location_id: str = Path(..., description="위치 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> LocationRecord:
    return location_service.get_location(location_id, current_user.id)


@router.post("", response_model=LocationRecord, status_code=status.HTTP_201_CREATED)
def create_location(
    request: LocationCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> LocationRecord:
    """
    위치 생성

    HTTP Status:
        201: 생성됨 (같은 id 재전송 시 기존 레코드)
        409: 다른 사용자가 이미 사용 중인 id
        422: 입력 검증 실패
    """
    return location_service.create_location(current_user.id, request)


@router.put("/{location_id}", response_model=LocationRecord)
def update_location(
    request: LocationUpdate,
    location_id: str = Path(..., description="위치 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> LocationRecord:
    return location_service.update_location(location_id, current_user.id, request)


@router.delete("/{location_id}", response_model=DeleteResultResponse)
def delete_location(
    location_id: str = Path(..., description="위치 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> DeleteResultResponse:
    location_service.delete_location(location_id, current_user.id)
    return DeleteResultResponse(success=True, message=f"Location {location_id} deleted")


@router.post("/{location_id}/default", response_model=LocationRecord)
def set_default_location(
    location_id: str = Path(..., description="위치 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    location_service: LocationService = Depends(get_location_service),
) -> LocationRecord:
    """기본 위치 지정 - 기존 기본 위치 해제와 함께 하나의 트랜잭션으로 처리"""
    return location_service.set_default(location_id, current_user.id)
