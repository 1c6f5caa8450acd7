"""
봉투 주문 (배송)

사용자는 저장된 위치로 봉투를 주문하고 tracking_id 로 주문을 조회합니다.
items 는 [{"bag_type": ..., "quantity": ...}] 형태이며 quantity 는 그 합계입니다.
"""

import enum
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trashdrop.models.base import BaseModel
from trashdrop.models.points import new_uuid


class BagOrderStatusEnum(enum.Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class BagOrder(BaseModel):
    __tablename__ = "bag_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    tracking_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    location_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("user_locations.id", ondelete="SET NULL"), nullable=True
    )
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[BagOrderStatusEnum] = mapped_column(
        Enum(BagOrderStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=BagOrderStatusEnum.PENDING,
        nullable=False,
    )
    estimated_delivery: Mapped[date] = mapped_column(Date, nullable=False)
