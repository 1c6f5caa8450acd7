import pytest

from trashdrop.core.tiers import TierTable, load_tier_table


@pytest.fixture
def tier_table():
    return TierTable(
        [
            {"name": "Eco Starter", "points_threshold": 0},
            {"name": "Eco Guardian", "points_threshold": 100},
            {"name": "Eco Warrior", "points_threshold": 500},
            {"name": "Eco Champion", "points_threshold": 1000},
        ]
    )


class TestTierLookup:
    """등급 조회 테스트"""

    @pytest.mark.parametrize(
        "balance,expected",
        [
            (0, "Eco Starter"),
            (99, "Eco Starter"),
            (100, "Eco Guardian"),
            (499, "Eco Guardian"),
            (500, "Eco Warrior"),
            (1000, "Eco Champion"),
            (25000, "Eco Champion"),
        ],
    )
    def test_get_tier(self, tier_table, balance, expected):
        assert tier_table.get_tier(balance).name == expected

    def test_negative_balance_maps_to_lowest_tier(self, tier_table):
        assert tier_table.get_tier(-30).name == "Eco Starter"
        progress = tier_table.get_progress(-30)
        assert progress.progress_percent == 0
        assert progress.points_to_next == 130

    def test_next_tier(self, tier_table):
        assert tier_table.get_next_tier(150).name == "Eco Warrior"
        assert tier_table.get_next_tier(1000) is None


class TestTierProgress:
    """다음 등급 진행도 테스트"""

    def test_progress_within_tier(self, tier_table):
        # Given: 150 points is 50 of the 400 between Guardian and Warrior
        progress = tier_table.get_progress(150)

        # Then
        assert progress.current_tier.name == "Eco Guardian"
        assert progress.next_tier.name == "Eco Warrior"
        assert progress.progress_percent == 13  # 12.5 rounds half up
        assert progress.points_to_next == 350

    def test_progress_at_threshold_is_zero(self, tier_table):
        progress = tier_table.get_progress(500)
        assert progress.progress_percent == 0
        assert progress.points_to_next == 500

    def test_top_tier_is_complete(self, tier_table):
        progress = tier_table.get_progress(1200)
        assert progress.next_tier is None
        assert progress.progress_percent == 100
        assert progress.points_to_next == 0


class TestTierTableValidation:
    """등급 테이블 검증 테스트"""

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            TierTable([])

    def test_first_threshold_must_be_zero(self):
        with pytest.raises(ValueError):
            TierTable([{"name": "Bronze", "points_threshold": 10}])

    def test_thresholds_must_strictly_increase(self):
        with pytest.raises(ValueError):
            TierTable(
                [
                    {"name": "A", "points_threshold": 0},
                    {"name": "B", "points_threshold": 100},
                    {"name": "C", "points_threshold": 100},
                ]
            )

    def test_load_from_settings(self):
        table = load_tier_table()
        assert [tier.points_threshold for tier in table.tiers] == [0, 100, 500, 1000]


BALANCE_SWEEP = [-10_000, -1, 0, 1, 49, 50, 99, 100, 101, 250, 499, 500, 750, 999, 1000, 1001, 10**9]


class TestTierProperties:
    """잔액 전 구간에 대한 등급/진행도 성질"""

    @pytest.mark.parametrize("low,high", list(zip(BALANCE_SWEEP, BALANCE_SWEEP[1:])))
    def test_tier_is_monotonic(self, tier_table, low, high):
        assert (
            tier_table.get_tier(low).points_threshold
            <= tier_table.get_tier(high).points_threshold
        )

    def test_tier_is_monotonic_over_every_balance(self, tier_table):
        thresholds = [tier_table.get_tier(b).points_threshold for b in range(-50, 1200)]
        assert thresholds == sorted(thresholds)

    @pytest.mark.parametrize("balance", BALANCE_SWEEP)
    def test_progress_is_bounded(self, tier_table, balance):
        progress = tier_table.get_progress(balance)

        assert 0 <= progress.progress_percent <= 100
        assert progress.points_to_next >= 0
        if progress.next_tier is None:
            assert progress.progress_percent == 100
            assert progress.points_to_next == 0
        else:
            assert progress.next_tier.points_threshold > progress.current_tier.points_threshold

    def test_progress_never_decreases_within_a_tier(self, tier_table):
        percents = [tier_table.get_progress(b).progress_percent for b in range(100, 500)]
        assert percents == sorted(percents)
