import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from trashdrop.core.exceptions import (
    BusinessLogicError,
    InsufficientPointsError,
    NotFoundError,
    RewardNotFoundError,
    ValidationError,
)
from trashdrop.models.rewards import RedemptionStatusEnum
from trashdrop.repositories.points_repository import PointsRepository
from trashdrop.repositories.rewards_repository import RewardsRepository
from trashdrop.schemas.rewards import (
    AdminRewardCreateRequest,
    RedemptionHistoryResponse,
    RedemptionRecordResponse,
    RedemptionResult,
    RewardCatalogResponse,
    RewardItem,
)
from trashdrop.services.point_service import PointService

logger = logging.getLogger(__name__)


class RewardService:
    """리워드 카탈로그 및 교환 비즈니스 로직"""

    def __init__(self, db: Session, point_service: Optional[PointService] = None):
        self.db = db
        self.rewards_repo = RewardsRepository(db)
        self.points_repo = PointsRepository(db)
        self.point_service = point_service or PointService(db)

    def get_catalog(self, user_id: str) -> RewardCatalogResponse:
        """활성 리워드 목록 (비용 오름차순) + 현재 잔액으로 교환 가능 여부"""
        balance = self.point_service.get_balance(user_id)
        rewards = self.rewards_repo.get_active_rewards(balance=balance)
        progress = self.point_service.get_progress(balance)

        logger.info(f"Retrieved reward catalog with {len(rewards)} items for user {user_id}")
        return RewardCatalogResponse(
            rewards=rewards,
            total_count=len(rewards),
            balance=balance,
            tier=progress.current_tier,
            progress=progress,
        )

    def get_reward(self, reward_id: str) -> RewardItem:
        reward = self.rewards_repo.get_active_reward(reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id)
        return reward

    def redeem(self, user_id: str, reward_id: str) -> RedemptionResult:
        """리워드 교환

        교환 기록(pending)과 -cost 차감 거래를 하나의 DB 트랜잭션으로 기록합니다.
        둘 중 하나라도 실패하면 둘 다 롤백됩니다. PostgreSQL 에서는 잔액 확인부터
        commit 까지 사용자 단위 advisory lock 을 잡습니다.

        Raises:
            RewardNotFoundError: 리워드가 없거나 비활성
            InsufficientPointsError: 잔액 < 비용 (shortfall 포함)
        """
        reward = self.get_reward(reward_id)
        cost = reward.points_cost
        redemption_id = str(uuid.uuid4())

        try:
            self.points_repo.lock_user_ledger(user_id)
            balance = self.points_repo.get_user_balance(user_id)
            if balance < cost:
                raise InsufficientPointsError(required=cost, available=balance)

            debit = self.points_repo.add_transaction(
                user_id=user_id,
                points=-cost,
                reason=f"Reward redemption: {reward.name}",
                ref_id=f"redemption_{redemption_id}",
                commit=False,
            )
            redemption = self.rewards_repo.create_redemption(
                user_id=user_id,
                reward_id=reward.id,
                points_spent=cost,
                transaction_id=debit.id,
                redemption_id=redemption_id,
                commit=False,
            )
            self.db.commit()
        except InsufficientPointsError as e:
            self.db.rollback()
            logger.warning(f"Insufficient points for user {user_id}: {str(e)}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to redeem reward {reward_id} for user {user_id}: {str(e)}")
            raise

        new_balance = balance - cost
        logger.info(
            f"User {user_id} redeemed {reward.name} for {cost} points (balance {new_balance})"
        )
        return RedemptionResult(
            success=True,
            redemption=redemption,
            balance=new_balance,
            progress=self.point_service.get_progress(new_balance),
        )

    def get_redemption_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> RedemptionHistoryResponse:
        if limit > 100:
            limit = 100

        history = self.rewards_repo.get_user_redemptions(user_id, limit=limit, offset=offset)
        return RedemptionHistoryResponse(
            history=history,
            total_count=self.rewards_repo.count_user_redemptions(user_id),
        )

    def create_reward(self, request: AdminRewardCreateRequest) -> RewardItem:
        """관리자 - 리워드 생성"""
        reward = self.rewards_repo.create_reward(
            name=request.name,
            points_cost=request.points_cost,
            description=request.description,
            category=request.category,
            image_url=request.image_url,
            active=request.active,
        )
        logger.info(f"Created reward {reward.id}: {reward.name} ({reward.points_cost} points)")
        return reward

    def update_redemption_status(
        self, redemption_id: str, status: str
    ) -> RedemptionRecordResponse:
        """관리자 - 교환 상태 변경

        pending 상태만 변경할 수 있습니다. cancelled 로 변경하면 같은 트랜잭션에서
        사용한 포인트를 환불하는 거래를 기록합니다.
        """
        try:
            new_status = RedemptionStatusEnum(status)
        except ValueError:
            raise ValidationError(f"Invalid redemption status: {status}")
        if new_status == RedemptionStatusEnum.PENDING:
            raise ValidationError("Redemption can only move to fulfilled or cancelled")

        redemption = self.rewards_repo.get_redemption(redemption_id)
        if redemption is None:
            raise NotFoundError(f"Redemption not found: {redemption_id}")
        if redemption.status != RedemptionStatusEnum.PENDING.value:
            raise BusinessLogicError(
                error_code="REWARD_002",
                message=f"Redemption is already {redemption.status}",
                details={"redemption_id": redemption_id, "status": redemption.status},
            )

        try:
            if new_status == RedemptionStatusEnum.CANCELLED and redemption.points_spent > 0:
                self.points_repo.add_transaction(
                    user_id=redemption.user_id,
                    points=redemption.points_spent,
                    reason=f"Refund for cancelled redemption: {redemption.reward_name or redemption.reward_id}",
                    ref_id=f"refund_{redemption_id}",
                    commit=False,
                )
            updated = self.rewards_repo.update_redemption_status(
                redemption_id, new_status, commit=False
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update redemption {redemption_id}: {str(e)}")
            raise

        logger.info(f"Redemption {redemption_id} -> {new_status.value}")
        return updated
