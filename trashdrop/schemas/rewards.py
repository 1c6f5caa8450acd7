from pydantic import BaseModel, Field
from typing import List, Optional

from trashdrop.schemas.points import RewardTier, TierProgress


class RewardItem(BaseModel):
    """리워드 아이템"""

    id: str = Field(..., description="리워드 ID")
    name: str = Field(..., description="리워드명")
    description: Optional[str] = Field(None, description="설명")
    category: Optional[str] = Field(None, description="카테고리")
    image_url: Optional[str] = Field(None, description="이미지 URL")
    points_cost: int = Field(..., ge=0, description="필요 포인트")
    active: bool = Field(True, description="교환 가능 여부")
    available: bool = Field(False, description="현재 잔액으로 교환 가능한지")

    class Config:
        from_attributes = True


class RewardCatalogResponse(BaseModel):
    """리워드 카탈로그 응답"""

    rewards: List[RewardItem] = Field(..., description="리워드 목록 (비용 오름차순)")
    total_count: int = Field(..., description="총 리워드 수")
    balance: int = Field(..., description="사용자 잔액")
    tier: RewardTier = Field(..., description="현재 등급")
    progress: TierProgress = Field(..., description="다음 등급 진행도")


class RewardRedemptionRequest(BaseModel):
    """리워드 교환 요청"""

    reward_id: str = Field(..., min_length=1, description="교환할 리워드 ID")


class RedemptionRecordResponse(BaseModel):
    """리워드 교환 기록"""

    id: str = Field(..., description="교환 ID")
    user_id: str = Field(..., description="사용자 ID")
    reward_id: str = Field(..., description="리워드 ID")
    reward_name: Optional[str] = Field(None, description="리워드명")
    points_spent: int = Field(..., description="사용된 포인트")
    status: str = Field(..., description="pending | fulfilled | cancelled")
    transaction_id: Optional[str] = Field(None, description="차감 거래 ID")
    created_at: str = Field(..., description="교환 요청 시간")
    updated_at: Optional[str] = Field(None, description="마지막 상태 변경 시간")

    class Config:
        from_attributes = True


class RedemptionResult(BaseModel):
    """리워드 교환 응답"""

    success: bool = Field(True, description="교환 성공 여부")
    redemption: RedemptionRecordResponse = Field(..., description="생성된 교환 기록")
    balance: int = Field(..., description="교환 후 잔액")
    progress: TierProgress = Field(..., description="교환 후 등급 진행도")


class RedemptionHistoryResponse(BaseModel):
    """리워드 교환 내역 응답"""

    history: List[RedemptionRecordResponse] = Field(..., description="교환 내역 (최신순)")
    total_count: int = Field(..., description="총 교환 건수")


class AdminRewardCreateRequest(BaseModel):
    """관리자용 리워드 생성 요청"""

    name: str = Field(..., min_length=1, max_length=200, description="리워드명")
    points_cost: int = Field(..., ge=0, description="필요 포인트")
    description: Optional[str] = Field(None, max_length=1000, description="설명")
    category: Optional[str] = Field(None, max_length=50, description="카테고리")
    image_url: Optional[str] = Field(None, description="이미지 URL")
    active: bool = Field(True, description="활성 여부")


class AdminRedemptionStatusRequest(BaseModel):
    """관리자용 교환 상태 변경 요청"""

    status: str = Field(..., pattern="^(fulfilled|cancelled)$", description="fulfilled | cancelled")
