import enum
from typing import Optional

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trashdrop.models.base import BaseModel
from trashdrop.models.points import new_uuid


class RedemptionStatusEnum(enum.Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class Reward(BaseModel):
    __tablename__ = "rewards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class RedemptionRecord(BaseModel):
    """Always written in the same transaction as its negative PointsTransaction"""

    __tablename__ = "rewards_redemptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    reward_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rewards.id"), nullable=False
    )
    # reward cost at redemption time, frozen
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[RedemptionStatusEnum] = mapped_column(
        Enum(RedemptionStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=RedemptionStatusEnum.PENDING,
        nullable=False,
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("points_transactions.id"), nullable=True
    )
