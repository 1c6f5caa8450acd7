"""
기본 리워드 카탈로그 시드 스크립트
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from trashdrop.database.session import session_scope
from trashdrop.models.rewards import Reward

DEFAULT_REWARDS = [
    ("reward-1", "Reusable Water Bottle", "Eco-friendly reusable water bottle made from recycled materials", 50, "merchandise", "/images/rewards/water-bottle.jpg"),
    ("reward-2", "TrashDrop T-Shirt", "Show your environmental commitment with this organic cotton T-shirt", 100, "merchandise", "/images/rewards/tshirt.jpg"),
    ("reward-3", "Plant a Tree Certificate", "We plant a tree on your behalf and send you a certificate", 150, "impact", "/images/rewards/tree-certificate.jpg"),
    ("reward-4", "5% Grocery Discount", "Receive a 5% discount on your next grocery purchase at partner stores", 200, "discount", "/images/rewards/grocery-discount.jpg"),
    ("reward-5", "Free Waste Pickup", "Get one free waste pickup service", 300, "service", "/images/rewards/free-pickup.jpg"),
    ("reward-6", "Premium Eco Kit", "Complete kit with reusable items: bottle, containers, bags, and utensils", 500, "merchandise", "/images/rewards/eco-kit.jpg"),
    ("reward-7", "Community Garden Donation", "Donate to a community garden project in your neighborhood", 750, "impact", "/images/rewards/garden-donation.jpg"),
    ("reward-8", "Eco Ambassador Status", "Become an official TrashDrop Eco Ambassador with special perks", 1000, "status", "/images/rewards/ambassador.jpg"),
]


def seed_rewards():
    """리워드 카탈로그 시드 (이미 있는 id 는 갱신)"""
    try:
        with session_scope() as db:
            for reward_id, name, description, cost, category, image_url in DEFAULT_REWARDS:
                reward = db.query(Reward).filter(Reward.id == reward_id).first()
                if reward is None:
                    reward = Reward(id=reward_id)
                    db.add(reward)
                reward.name = name
                reward.description = description
                reward.points_cost = cost
                reward.category = category
                reward.image_url = image_url
                reward.active = True

        print(f"✅ 리워드 시드 데이터 생성 완료: {len(DEFAULT_REWARDS)}개")
        for reward_id, name, _, cost, category, _ in DEFAULT_REWARDS:
            print(f"   {cost:5d}P  {name} ({category})")

    except Exception as e:
        print(f"❌ 리워드 시드 데이터 생성 실패: {str(e)}")
        raise


if __name__ == "__main__":
    seed_rewards()
