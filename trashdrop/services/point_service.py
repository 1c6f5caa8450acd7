from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError

from trashdrop.core.exceptions import InvalidAmountError, TransientFailure
from trashdrop.core.tiers import TierTable, load_tier_table
from trashdrop.repositories.points_repository import PointsRepository
from trashdrop.schemas.points import (
    PointsBalanceResponse,
    PointsHistoryResponse,
    PointsIntegrityCheckResponse,
    PointsTransactionEntry,
    RewardTier,
    RewardTiersResponse,
    TierProgress,
)
from trashdrop.utils.date_utils import format_timestamp, utcnow
import logging

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100


class PointService:
    """포인트 원장(RewardsLedger) 비즈니스 로직

    잔액은 거래 합계로만 계산하며 캐시하지 않습니다. 지급 직후의 get_balance 는
    항상 새 거래를 반영합니다.
    """

    def __init__(self, db: Session, tier_table: Optional[TierTable] = None):
        self.db = db
        self.points_repo = PointsRepository(db)
        self.tier_table = tier_table or load_tier_table()

    def get_balance(self, user_id: str) -> int:
        """사용자 포인트 잔액 (거래가 없으면 0)"""
        try:
            return self.points_repo.get_user_balance(user_id)
        except OperationalError as e:
            logger.error(f"Failed to get balance for user {user_id}: {str(e)}")
            raise TransientFailure("Points ledger unavailable")

    def get_tier(self, balance: int) -> RewardTier:
        return self.tier_table.get_tier(balance)

    def get_progress(self, balance: int) -> TierProgress:
        return self.tier_table.get_progress(balance)

    def get_tiers(self) -> RewardTiersResponse:
        return RewardTiersResponse(tiers=self.tier_table.tiers)

    def get_summary(self, user_id: str) -> PointsBalanceResponse:
        """잔액 + 등급 + 진행도"""
        balance = self.get_balance(user_id)
        progress = self.get_progress(balance)
        logger.info(
            f"Retrieved balance for user {user_id}: {balance} ({progress.current_tier.name})"
        )
        return PointsBalanceResponse(
            balance=balance, tier=progress.current_tier, progress=progress
        )

    def award_points(
        self,
        user_id: str,
        points: int,
        reason: str,
        related_request_id: Optional[str] = None,
        ref_id: Optional[str] = None,
        commit: bool = True,
    ) -> PointsTransactionEntry:
        """포인트 지급

        Args:
            user_id: 사용자 ID
            points: 지급 포인트 (양수)
            reason: 지급 사유
            related_request_id: 관련 픽업 요청 ID
            ref_id: 멱등성 키 - 이미 있으면 기존 거래를 반환
            commit: False 면 호출자가 다른 쓰기와 함께 commit (픽업 완료, 봉투 등록)

        Raises:
            InvalidAmountError: points <= 0
            ConflictError: ref_id 가 다른 사용자나 다른 금액으로 이미 쓰임
        """
        if points <= 0:
            raise InvalidAmountError(points)

        try:
            entry = self.points_repo.add_transaction(
                user_id=user_id,
                points=points,
                reason=reason,
                related_request_id=related_request_id,
                ref_id=ref_id,
                commit=commit,
            )
        except OperationalError as e:
            logger.error(f"Failed to award points for user {user_id}: {str(e)}")
            raise TransientFailure("Points ledger unavailable")

        logger.info(f"Awarded {points} points to user {user_id}: {reason}")
        return entry

    def get_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> PointsHistoryResponse:
        """거래 내역 (최신순)

        Args:
            limit: 페이지 크기 (최대 100)
        """
        limit = max(1, min(limit, MAX_HISTORY_LIMIT))
        offset = max(offset, 0)

        entries, total_count = self.points_repo.get_user_history(
            user_id=user_id, limit=limit, offset=offset
        )
        logger.info(f"Retrieved history for user {user_id}: {total_count} entries")
        return PointsHistoryResponse(
            balance=self.get_balance(user_id),
            entries=entries,
            total_count=total_count,
            has_next=offset + limit < total_count,
        )

    def verify_user_integrity(self, user_id: str) -> PointsIntegrityCheckResponse:
        """
        잔액 정합성 검증

        원장은 추가 전용이므로 잔액은 항상 거래 합계와 같습니다. 여기서는 합계가
        음수가 되지 않았는지(차감이 적립을 넘지 않았는지)를 확인합니다.
        """
        credit, debit, count = self.points_repo.get_user_totals(user_id)
        balance = credit - debit
        status = "OK" if balance >= 0 else "NEGATIVE_BALANCE"
        if status != "OK":
            logger.warning(f"Negative balance detected for user {user_id}: {balance}")

        return PointsIntegrityCheckResponse(
            status=status,
            user_id=user_id,
            calculated_balance=balance,
            credit_total=credit,
            debit_total=debit,
            entry_count=count,
            verified_at=format_timestamp(utcnow()),
        )
