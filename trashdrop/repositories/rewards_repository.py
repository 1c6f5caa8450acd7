from typing import List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from trashdrop.models.rewards import (
    Reward as RewardModel,
    RedemptionRecord as RedemptionRecordModel,
    RedemptionStatusEnum,
)
from trashdrop.schemas.rewards import RewardItem, RedemptionRecordResponse
from trashdrop.repositories.base import BaseRepository
from trashdrop.utils.date_utils import format_timestamp, utcnow


class RewardsRepository(BaseRepository[RewardModel, RewardItem]):
    """리워드 리포지토리 - 카탈로그 및 교환 기록 관리"""

    def __init__(self, db: Session):
        super().__init__(RewardModel, RewardItem, db)

    def _to_reward_item(self, model_instance: RewardModel, balance: Optional[int] = None) -> RewardItem:
        """Reward 모델을 RewardItem 스키마로 변환 (balance 가 있으면 교환 가능 여부 계산)"""
        if model_instance is None:
            return None

        cost = getattr(model_instance, "points_cost", 0)
        active = bool(getattr(model_instance, "active", False))
        data = {
            "id": model_instance.id,
            "name": getattr(model_instance, "name", ""),
            "description": getattr(model_instance, "description", None),
            "category": getattr(model_instance, "category", None),
            "image_url": getattr(model_instance, "image_url", None),
            "points_cost": cost,
            "active": active,
            "available": active and balance is not None and cost <= balance,
        }
        return RewardItem(**data)

    def _to_schema(self, model_instance: RewardModel) -> Optional[RewardItem]:
        return self._to_reward_item(model_instance)

    def _to_redemption_response(
        self, model_instance: RedemptionRecordModel, reward_name: Optional[str] = None
    ) -> RedemptionRecordResponse:
        if model_instance is None:
            return None

        status = model_instance.status
        data = {
            "id": model_instance.id,
            "user_id": model_instance.user_id,
            "reward_id": model_instance.reward_id,
            "reward_name": reward_name,
            "points_spent": model_instance.points_spent,
            "status": status.value if isinstance(status, RedemptionStatusEnum) else str(status),
            "transaction_id": model_instance.transaction_id,
            "created_at": format_timestamp(model_instance.created_at) or "",
            "updated_at": format_timestamp(model_instance.updated_at),
        }
        return RedemptionRecordResponse(**data)

    def get_active_rewards(self, balance: Optional[int] = None) -> List[RewardItem]:
        """활성 리워드 목록 (비용 오름차순)"""
        instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.active.is_(True))
            .order_by(asc(self.model_class.points_cost), asc(self.model_class.name))
            .all()
        )
        return [self._to_reward_item(instance, balance) for instance in instances]

    def get_active_reward(self, reward_id: str) -> Optional[RewardItem]:
        """활성 상태인 리워드만 반환 (없거나 비활성이면 None)"""
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.id == reward_id, self.model_class.active.is_(True))
            .first()
        )
        return self._to_reward_item(instance)

    def create_reward(
        self,
        name: str,
        points_cost: int,
        description: Optional[str] = None,
        category: Optional[str] = None,
        image_url: Optional[str] = None,
        active: bool = True,
        reward_id: Optional[str] = None,
    ) -> RewardItem:
        kwargs = dict(
            name=name,
            points_cost=points_cost,
            description=description,
            category=category,
            image_url=image_url,
            active=active,
        )
        if reward_id:
            kwargs["id"] = reward_id
        return self.create(**kwargs)

    def create_redemption(
        self,
        user_id: str,
        reward_id: str,
        points_spent: int,
        transaction_id: Optional[str],
        redemption_id: Optional[str] = None,
        commit: bool = True,
    ) -> RedemptionRecordResponse:
        instance = RedemptionRecordModel(
            user_id=user_id,
            reward_id=reward_id,
            points_spent=points_spent,
            status=RedemptionStatusEnum.PENDING,
            transaction_id=transaction_id,
        )
        if redemption_id:
            instance.id = redemption_id
        self.db.add(instance)
        self._flush(instance, commit)
        return self._to_redemption_response(instance, self._reward_name(reward_id))

    def get_redemption(self, redemption_id: str) -> Optional[RedemptionRecordResponse]:
        instance = (
            self.db.query(RedemptionRecordModel)
            .filter(RedemptionRecordModel.id == redemption_id)
            .first()
        )
        if instance is None:
            return None
        return self._to_redemption_response(instance, self._reward_name(instance.reward_id))

    def update_redemption_status(
        self, redemption_id: str, status: RedemptionStatusEnum, commit: bool = True
    ) -> Optional[RedemptionRecordResponse]:
        instance = (
            self.db.query(RedemptionRecordModel)
            .filter(RedemptionRecordModel.id == redemption_id)
            .first()
        )
        if instance is None:
            return None

        instance.status = status
        instance.updated_at = utcnow()
        self._flush(instance, commit)
        return self._to_redemption_response(instance, self._reward_name(instance.reward_id))

    def get_user_redemptions(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[RedemptionRecordResponse]:
        """사용자 교환 내역 (최신순)"""
        rows = (
            self.db.query(RedemptionRecordModel, RewardModel.name)
            .join(RewardModel, RewardModel.id == RedemptionRecordModel.reward_id)
            .filter(RedemptionRecordModel.user_id == user_id)
            .order_by(desc(RedemptionRecordModel.created_at))
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [self._to_redemption_response(record, name) for record, name in rows]

    def count_user_redemptions(self, user_id: str) -> int:
        return (
            self.db.query(RedemptionRecordModel)
            .filter(RedemptionRecordModel.user_id == user_id)
            .count()
        )

    def _reward_name(self, reward_id: str) -> Optional[str]:
        row = self.db.query(RewardModel.name).filter(RewardModel.id == reward_id).first()
        return row[0] if row else None
