"""
리워드 API 라우터

- GET /rewards: 리워드 카탈로그 (교환 가능 여부 포함)
- GET /rewards/redemptions/my: 내 교환 내역
- GET /rewards/{reward_id}: 리워드 상세
- POST /rewards/redeem: 리워드 교환
- POST /rewards/admin/items: 관리자 - 리워드 생성
- PATCH /rewards/admin/redemptions/{redemption_id}: 관리자 - 교환 상태 변경
"""

from fastapi import APIRouter, Depends, Path, Query, status

from trashdrop.core.security import get_current_user, require_admin
from trashdrop.deps import get_reward_service
from trashdrop.schemas.rewards import (
    AdminRedemptionStatusRequest,
    AdminRewardCreateRequest,
    RedemptionHistoryResponse,
    RedemptionRecordResponse,
    RedemptionResult,
    RewardCatalogResponse,
    RewardItem,
    RewardRedemptionRequest,
)
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.reward_service import RewardService

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("", response_model=RewardCatalogResponse)
def get_catalog(
    current_user: AuthenticatedUser = Depends(get_current_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardCatalogResponse:
    """
    리워드 카탈로그 조회

    활성 리워드를 비용 오름차순으로 반환하며, 각 항목의 available 은
    현재 잔액으로 교환 가능한지를 나타냅니다.
    """
    return reward_service.get_catalog(current_user.id)


@router.get("/redemptions/my", response_model=RedemptionHistoryResponse)
def get_my_redemptions(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: AuthenticatedUser = Depends(get_current_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> RedemptionHistoryResponse:
    return reward_service.get_redemption_history(current_user.id, limit=limit, offset=offset)


@router.get("/{reward_id}", response_model=RewardItem)
def get_reward(
    reward_id: str = Path(..., description="리워드 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardItem:
    return reward_service.get_reward(reward_id)


@router.post("/redeem", response_model=RedemptionResult)
def redeem_reward(
    request: RewardRedemptionRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    reward_service: RewardService = Depends(get_reward_service),
) -> RedemptionResult:
    """
    리워드 교환

    교환 기록과 포인트 차감은 하나의 트랜잭션으로 기록됩니다.

    HTTP Status:
        200: 교환 완료 - 교환 후 잔액과 등급 진행도 포함
        400: 잔액 부족 (BALANCE_001, details.shortfall)
        404: 리워드가 없거나 비활성 (REWARD_001)
    """
    return reward_service.redeem(current_user.id, request.reward_id)


@router.post("/admin/items", response_model=RewardItem, status_code=status.HTTP_201_CREATED)
def admin_create_reward(
    request: AdminRewardCreateRequest,
    current_user: AuthenticatedUser = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardItem:
    return reward_service.create_reward(request)


@router.patch("/admin/redemptions/{redemption_id}", response_model=RedemptionRecordResponse)
def admin_update_redemption(
    request: AdminRedemptionStatusRequest,
    redemption_id: str = Path(..., description="교환 ID"),
    current_user: AuthenticatedUser = Depends(require_admin),
    reward_service: RewardService = Depends(get_reward_service),
) -> RedemptionRecordResponse:
    """
    관리자 - 교환 상태 변경 (pending 만 변경 가능)

    cancelled 로 변경하면 사용한 포인트가 같은 트랜잭션에서 환불됩니다.
    """
    return reward_service.update_redemption_status(redemption_id, request.status)
