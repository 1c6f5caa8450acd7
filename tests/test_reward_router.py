import pytest

from trashdrop.repositories.rewards_repository import RewardsRepository
from trashdrop.services.point_service import PointService


@pytest.fixture
def point_service(db_session):
    return PointService(db_session)


@pytest.fixture
def catalog(db_session):
    repo = RewardsRepository(db_session)
    repo.create_reward(name="Reusable Water Bottle", points_cost=50, reward_id="reward-1")
    repo.create_reward(name="TrashDrop T-Shirt", points_cost=100, reward_id="reward-2")
    repo.create_reward(name="Plant a Tree Certificate", points_cost=150, reward_id="reward-3")


class TestRewardRoutes:
    """리워드 라우터 테스트"""

    def test_get_catalog(self, client, catalog, point_service):
        point_service.award_points("user-1", 100, "Award")

        response = client.get("/api/v1/rewards")

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 3
        assert [r["available"] for r in data["rewards"]] == [True, True, False]
        assert data["tier"]["name"] == "Eco Guardian"

    def test_get_reward_not_found(self, client, catalog):
        response = client.get("/api/v1/rewards/reward-404")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "REWARD_001"

    def test_redeem(self, client, catalog, point_service):
        point_service.award_points("user-1", 150, "Award")

        response = client.post("/api/v1/rewards/redeem", json={"reward_id": "reward-2"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["balance"] == 50
        assert data["redemption"]["status"] == "pending"
        assert data["progress"]["current_tier"]["name"] == "Eco Starter"

        history = client.get("/api/v1/rewards/redemptions/my").json()
        assert history["total_count"] == 1
        assert history["history"][0]["reward_name"] == "TrashDrop T-Shirt"

    def test_redeem_insufficient_points(self, client, catalog, point_service):
        point_service.award_points("user-1", 40, "Award")

        response = client.post("/api/v1/rewards/redeem", json={"reward_id": "reward-1"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "BALANCE_001"
        assert error["details"]["shortfall"] == 10


class TestRewardAdminRoutes:
    """관리자 리워드 라우터 테스트"""

    def test_create_reward_requires_admin(self, client):
        response = client.post(
            "/api/v1/rewards/admin/items", json={"name": "Compost Bin", "points_cost": 250}
        )
        assert response.status_code == 403

    def test_create_reward(self, client, login, admin):
        login(admin)
        response = client.post(
            "/api/v1/rewards/admin/items",
            json={"name": "Compost Bin", "points_cost": 250, "category": "merchandise"},
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Compost Bin"

    def test_cancel_redemption_refunds(self, client, login, user, admin, catalog, point_service):
        point_service.award_points("user-1", 60, "Award")
        redemption_id = client.post(
            "/api/v1/rewards/redeem", json={"reward_id": "reward-1"}
        ).json()["redemption"]["id"]

        login(admin)
        response = client.patch(
            f"/api/v1/rewards/admin/redemptions/{redemption_id}", json={"status": "cancelled"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert point_service.get_balance("user-1") == 60

    def test_invalid_status_rejected(self, client, login, admin):
        login(admin)
        response = client.patch(
            "/api/v1/rewards/admin/redemptions/any", json={"status": "shipped"}
        )
        assert response.status_code == 422
