from pydantic import BaseModel, Field
from typing import List, Optional


class RewardTier(BaseModel):
    """리워드 등급"""

    name: str = Field(..., description="등급명")
    points_threshold: int = Field(..., ge=0, description="등급 진입 포인트")

    class Config:
        from_attributes = True


class TierProgress(BaseModel):
    """다음 등급까지의 진행도"""

    current_tier: RewardTier = Field(..., description="현재 등급")
    next_tier: Optional[RewardTier] = Field(None, description="다음 등급 (최고 등급이면 None)")
    progress_percent: int = Field(..., ge=0, le=100, description="진행률 (0-100)")
    points_to_next: int = Field(0, ge=0, description="다음 등급까지 필요한 포인트")


class PointsTransactionEntry(BaseModel):
    """포인트 거래 항목"""

    id: str = Field(..., description="거래 ID")
    user_id: str = Field(..., description="사용자 ID")
    transaction_type: str = Field(..., description="CREDIT | DEBIT")
    points: int = Field(..., description="포인트 변화량")
    reason: str = Field(..., description="거래 사유")
    related_request_id: Optional[str] = Field(None, description="관련 픽업 요청 ID")
    ref_id: Optional[str] = Field(None, description="멱등성 참조 ID")
    created_at: str = Field(..., description="생성 시간")

    class Config:
        from_attributes = True


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    balance: int = Field(..., description="현재 포인트 잔액")
    tier: RewardTier = Field(..., description="현재 등급")
    progress: TierProgress = Field(..., description="다음 등급 진행도")

    class Config:
        from_attributes = True


class PointsHistoryResponse(BaseModel):
    """포인트 거래 내역 응답"""

    balance: int = Field(..., description="현재 잔액")
    entries: List[PointsTransactionEntry] = Field(..., description="거래 목록 (최신순)")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")


class RewardTiersResponse(BaseModel):
    tiers: List[RewardTier]


class AdminAwardRequest(BaseModel):
    """관리자 포인트 지급 요청"""

    user_id: str = Field(..., min_length=1, description="사용자 ID")
    points: int = Field(..., description="지급할 포인트 (양수)")
    reason: str = Field(..., min_length=1, max_length=255, description="지급 사유")
    related_request_id: Optional[str] = Field(None, description="관련 픽업 요청 ID")
    ref_id: Optional[str] = Field(None, max_length=128, description="멱등성 참조 ID")


class PointsIntegrityCheckResponse(BaseModel):
    """포인트 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, NEGATIVE_BALANCE)")
    user_id: str = Field(..., description="사용자 ID")
    calculated_balance: int = Field(..., description="거래 합계로 계산한 잔액")
    credit_total: int = Field(..., description="적립 합계")
    debit_total: int = Field(..., description="차감 합계 (양수)")
    entry_count: int = Field(..., description="거래 수")
    verified_at: str = Field(..., description="검증 시간")
