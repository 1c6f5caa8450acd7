import pytest
from unittest.mock import patch

from trashdrop.core.exceptions import (
    BusinessLogicError,
    InsufficientPointsError,
    NotFoundError,
    RewardNotFoundError,
    ValidationError,
)
from trashdrop.models.points import PointsTransaction
from trashdrop.models.rewards import RedemptionRecord
from trashdrop.schemas.rewards import AdminRewardCreateRequest
from trashdrop.services.point_service import PointService
from trashdrop.services.reward_service import RewardService


@pytest.fixture
def point_service(db_session):
    return PointService(db_session)


@pytest.fixture
def reward_service(db_session, point_service):
    return RewardService(db_session, point_service=point_service)


@pytest.fixture
def catalog(reward_service):
    """비용이 다른 리워드 3개 + 비활성 1개"""
    bottle = reward_service.rewards_repo.create_reward(
        name="Reusable Water Bottle", points_cost=50, category="merchandise", reward_id="reward-1"
    )
    shirt = reward_service.rewards_repo.create_reward(
        name="TrashDrop T-Shirt", points_cost=100, category="merchandise", reward_id="reward-2"
    )
    kit = reward_service.rewards_repo.create_reward(
        name="Premium Eco Kit", points_cost=500, category="merchandise", reward_id="reward-6"
    )
    retired = reward_service.rewards_repo.create_reward(
        name="Retired Mug", points_cost=10, active=False, reward_id="reward-old"
    )
    return {"bottle": bottle, "shirt": shirt, "kit": kit, "retired": retired}


class TestCatalog:
    """리워드 카탈로그 테스트"""

    def test_active_rewards_sorted_by_cost(self, reward_service, point_service, catalog):
        point_service.award_points("user-1", 120, "Award")

        result = reward_service.get_catalog("user-1")

        assert [r.id for r in result.rewards] == ["reward-1", "reward-2", "reward-6"]
        assert [r.available for r in result.rewards] == [True, True, False]
        assert result.balance == 120
        assert result.tier.name == "Eco Guardian"

    def test_inactive_reward_not_found(self, reward_service, catalog):
        with pytest.raises(RewardNotFoundError):
            reward_service.get_reward("reward-old")

    def test_create_reward(self, reward_service):
        reward = reward_service.create_reward(
            AdminRewardCreateRequest(name="Compost Bin", points_cost=250, category="merchandise")
        )
        assert reward.id
        assert reward_service.get_reward(reward.id).points_cost == 250


class TestRedeem:
    """리워드 교환 테스트"""

    def test_award_then_redeem(self, reward_service, point_service, catalog):
        # Given: 150 points puts the user in Eco Guardian
        point_service.award_points("user-1", 150, "Award")
        assert point_service.get_summary("user-1").tier.name == "Eco Guardian"

        # When
        result = reward_service.redeem("user-1", "reward-2")

        # Then
        assert result.success is True
        assert result.balance == 50
        assert result.progress.current_tier.name == "Eco Starter"
        assert result.redemption.status == "pending"
        assert result.redemption.points_spent == 100
        assert result.redemption.reward_name == "TrashDrop T-Shirt"
        assert point_service.get_balance("user-1") == 50

        debit = point_service.points_repo.get_by_ref_id(f"redemption_{result.redemption.id}")
        assert debit.points == -100
        assert result.redemption.transaction_id == debit.id

    def test_insufficient_points(self, reward_service, point_service, db_session, catalog):
        point_service.award_points("user-1", 40, "Award")

        with pytest.raises(InsufficientPointsError) as exc_info:
            reward_service.redeem("user-1", "reward-1")

        assert exc_info.value.shortfall == 10
        assert exc_info.value.details == {"required": 50, "available": 40, "shortfall": 10}
        assert point_service.get_balance("user-1") == 40
        assert db_session.query(RedemptionRecord).count() == 0

    def test_exact_balance_is_enough(self, reward_service, point_service, catalog):
        point_service.award_points("user-1", 50, "Award")
        result = reward_service.redeem("user-1", "reward-1")
        assert result.balance == 0

    def test_missing_reward(self, reward_service, catalog):
        with pytest.raises(RewardNotFoundError):
            reward_service.redeem("user-1", "does-not-exist")

    def test_redemption_failure_rolls_back_debit(self, reward_service, point_service, db_session, catalog):
        point_service.award_points("user-1", 200, "Award")

        with patch.object(
            reward_service.rewards_repo,
            "create_redemption",
            side_effect=RuntimeError("disk full"),
        ):
            with pytest.raises(RuntimeError):
                reward_service.redeem("user-1", "reward-2")

        assert point_service.get_balance("user-1") == 200
        assert db_session.query(PointsTransaction).filter(PointsTransaction.points < 0).count() == 0
        assert db_session.query(RedemptionRecord).count() == 0

    def test_history(self, reward_service, point_service, catalog):
        point_service.award_points("user-1", 300, "Award")
        reward_service.redeem("user-1", "reward-1")
        reward_service.redeem("user-1", "reward-2")

        history = reward_service.get_redemption_history("user-1")
        assert history.total_count == 2
        assert {h.reward_name for h in history.history} == {
            "Reusable Water Bottle",
            "TrashDrop T-Shirt",
        }


class TestRedemptionStatus:
    """관리자 교환 상태 변경 테스트"""

    def test_cancel_refunds_points(self, reward_service, point_service, catalog):
        point_service.award_points("user-1", 100, "Award")
        redemption = reward_service.redeem("user-1", "reward-1").redemption

        updated = reward_service.update_redemption_status(redemption.id, "cancelled")

        assert updated.status == "cancelled"
        assert point_service.get_balance("user-1") == 100
        assert point_service.points_repo.get_by_ref_id(f"refund_{redemption.id}").points == 50

    def test_fulfil(self, reward_service, point_service, catalog):
        point_service.award_points("user-1", 100, "Award")
        redemption = reward_service.redeem("user-1", "reward-1").redemption

        updated = reward_service.update_redemption_status(redemption.id, "fulfilled")

        assert updated.status == "fulfilled"
        assert point_service.get_balance("user-1") == 50

    def test_only_pending_can_change(self, reward_service, point_service, catalog):
        point_service.award_points("user-1", 100, "Award")
        redemption = reward_service.redeem("user-1", "reward-1").redemption
        reward_service.update_redemption_status(redemption.id, "fulfilled")

        with pytest.raises(BusinessLogicError) as exc_info:
            reward_service.update_redemption_status(redemption.id, "cancelled")
        assert exc_info.value.error_code == "REWARD_002"
        assert point_service.get_balance("user-1") == 50

    def test_invalid_status(self, reward_service):
        with pytest.raises(ValidationError):
            reward_service.update_redemption_status("any", "shipped")
        with pytest.raises(ValidationError):
            reward_service.update_redemption_status("any", "pending")

    def test_unknown_redemption(self, reward_service):
        with pytest.raises(NotFoundError):
            reward_service.update_redemption_status("missing", "fulfilled")
