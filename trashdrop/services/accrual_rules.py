"""
폐기물 분리배출 포인트 적립 규칙

(폐기물 종류, 봉투 수) -> 포인트. 부수효과 없는 순수 함수이며,
픽업 완료와 봉투 등록 흐름에서 RewardsLedger.award_points 전에 호출됩니다.
"""

from typing import Dict

from trashdrop.core.exceptions import InvalidAmountError

GENERAL = "general"

# 봉투당 포인트
PER_BAG_POINTS: Dict[str, int] = {
    "hazardous": 12,
    "plastic": 10,
    "glass": 8,
    "organic": 7,
    "recycling": 5,
    "paper": 5,
    GENERAL: 2,
}

REASONS: Dict[str, str] = {
    "hazardous": "Hazardous waste disposal",
    "plastic": "Plastic waste segregation",
    "glass": "Glass waste segregation",
    "organic": "Organic waste composting",
    "recycling": "Recyclable waste segregation",
    "paper": "Paper waste segregation",
    GENERAL: "General waste disposal",
}


def normalize_category(category: str) -> str:
    """Unknown or empty categories fall back to general"""
    key = (category or "").strip().lower()
    return key if key in PER_BAG_POINTS else GENERAL


def per_bag_rate(category: str) -> int:
    return PER_BAG_POINTS[normalize_category(category)]


def accrual_for(category: str, bag_count: int) -> int:
    if bag_count < 1:
        raise InvalidAmountError(bag_count, f"Bag count must be at least 1, got {bag_count}")
    return per_bag_rate(category) * bag_count


def reason_for(category: str) -> str:
    return REASONS[normalize_category(category)]
