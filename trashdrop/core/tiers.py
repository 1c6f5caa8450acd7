"""
리워드 등급 테이블

등급은 points_threshold 오름차순이며, 첫 등급의 threshold는 0이어야 합니다.
테이블은 로드 시점에 한 번만 검증하고, 조회 시에는 검증하지 않습니다.
"""

from bisect import bisect_right
from typing import Any, Dict, Iterable, List, Optional, Union

from trashdrop.schemas.points import RewardTier, TierProgress


class TierTable:
    def __init__(self, tiers: Iterable[Union[RewardTier, Dict[str, Any]]]):
        parsed = [
            tier if isinstance(tier, RewardTier) else RewardTier(**tier) for tier in tiers
        ]
        self._validate(parsed)
        self._tiers: List[RewardTier] = parsed
        self._thresholds = [tier.points_threshold for tier in parsed]

    @staticmethod
    def _validate(tiers: List[RewardTier]) -> None:
        if not tiers:
            raise ValueError("Reward tier table must not be empty")
        if tiers[0].points_threshold != 0:
            raise ValueError(
                f"First reward tier must start at 0, got {tiers[0].points_threshold}"
            )
        for previous, current in zip(tiers, tiers[1:]):
            if current.points_threshold <= previous.points_threshold:
                raise ValueError(
                    "Reward tier thresholds must be strictly increasing: "
                    f"{previous.name}={previous.points_threshold}, "
                    f"{current.name}={current.points_threshold}"
                )

    @property
    def tiers(self) -> List[RewardTier]:
        return list(self._tiers)

    def _index_for(self, balance: int) -> int:
        return max(bisect_right(self._thresholds, balance) - 1, 0)

    def get_tier(self, balance: int) -> RewardTier:
        """Greatest threshold <= balance; the lowest tier below the first threshold."""
        return self._tiers[self._index_for(balance)]

    def get_next_tier(self, balance: int) -> Optional[RewardTier]:
        index = self._index_for(balance) + 1
        if index >= len(self._tiers):
            return None
        return self._tiers[index]

    def get_progress(self, balance: int) -> TierProgress:
        current = self.get_tier(balance)
        next_tier = self.get_next_tier(balance)

        if next_tier is None:
            return TierProgress(
                current_tier=current, next_tier=None, progress_percent=100, points_to_next=0
            )

        span = next_tier.points_threshold - current.points_threshold
        gained = balance - current.points_threshold
        # round half up in integers: floor(100*gained/span + 0.5)
        percent = (200 * gained + span) // (2 * span)
        percent = min(max(percent, 0), 100)

        return TierProgress(
            current_tier=current,
            next_tier=next_tier,
            progress_percent=percent,
            points_to_next=max(next_tier.points_threshold - balance, 0),
        )


def load_tier_table(tiers: Optional[Iterable[Union[RewardTier, Dict[str, Any]]]] = None) -> TierTable:
    """Build the table from configuration (REWARD_TIERS) unless tiers are given."""
    if tiers is None:
        from trashdrop.config import settings

        tiers = settings.REWARD_TIERS
    return TierTable(tiers)
