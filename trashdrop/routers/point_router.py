"""
포인트 시스템 API 라우터

사용자용 엔드포인트:
- GET /points/balance: 내 잔액 + 등급 + 다음 등급 진행도
- GET /points/history: 내 포인트 거래 내역 (최신순)
- GET /points/tiers: 등급 테이블
- GET /points/integrity/my: 내 포인트 정합성 검증

관리자용 엔드포인트:
- POST /points/admin/award: 포인트 지급

인증 및 권한:
- 모든 엔드포인트는 Supabase Bearer 토큰 인증 필요
- 관리자 엔드포인트는 app_metadata.role=admin 필요
"""

from fastapi import APIRouter, Depends, Query

from trashdrop.core.security import get_current_user, require_admin
from trashdrop.deps import get_point_service
from trashdrop.schemas.points import (
    AdminAwardRequest,
    PointsBalanceResponse,
    PointsHistoryResponse,
    PointsIntegrityCheckResponse,
    PointsTransactionEntry,
    RewardTiersResponse,
)
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.point_service import PointService

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/balance", response_model=PointsBalanceResponse)
def get_my_balance(
    current_user: AuthenticatedUser = Depends(get_current_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsBalanceResponse:
    """
    내 포인트 잔액 조회

    잔액은 거래 합계로 매번 계산되며, 현재 등급과 다음 등급까지의 진행도를 함께 반환합니다.

    HTTP Status:
        200: 성공
        401: 인증 실패 또는 잘못된 토큰
    """
    return point_service.get_summary(current_user.id)


@router.get("/history", response_model=PointsHistoryResponse)
def get_my_history(
    limit: int = Query(50, ge=1, le=100, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsHistoryResponse:
    """
    내 포인트 거래 내역 조회

    Query Parameters:
        limit: 한 페이지 항목 수 (1-100, 기본: 50)
        offset: 건너뛸 항목 수 (기본: 0)

    Returns:
        PointsHistoryResponse
        - balance: 현재 잔액
        - entries: 거래 내역 (최신순)
        - total_count: 전체 거래 건수
        - has_next: 다음 페이지 존재 여부
    """
    return point_service.get_history(current_user.id, limit=limit, offset=offset)


@router.get("/tiers", response_model=RewardTiersResponse)
def get_tiers(
    current_user: AuthenticatedUser = Depends(get_current_user),
    point_service: PointService = Depends(get_point_service),
) -> RewardTiersResponse:
    """등급 테이블 (threshold 오름차순)"""
    return point_service.get_tiers()


@router.get("/integrity/my", response_model=PointsIntegrityCheckResponse)
def verify_my_integrity(
    current_user: AuthenticatedUser = Depends(get_current_user),
    point_service: PointService = Depends(get_point_service),
) -> PointsIntegrityCheckResponse:
    return point_service.verify_user_integrity(current_user.id)


@router.post("/admin/award", response_model=PointsTransactionEntry)
def admin_award_points(
    request: AdminAwardRequest,
    current_user: AuthenticatedUser = Depends(require_admin),
    point_service: PointService = Depends(get_point_service),
) -> PointsTransactionEntry:
    """
    관리자 - 포인트 지급

    ref_id 를 지정하면 같은 ref_id 로 다시 호출해도 한 번만 지급됩니다.

    HTTP Status:
        200: 지급 완료 (또는 기존 거래 반환)
        403: 관리자 권한 없음
        422: points <= 0 (POINTS_001)
    """
    return point_service.award_points(
        user_id=request.user_id,
        points=request.points,
        reason=request.reason,
        related_request_id=request.related_request_id,
        ref_id=request.ref_id,
    )
