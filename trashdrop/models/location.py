"""
사용자 픽업 위치

id는 클라이언트가 생성한 UUID로, 온라인/오프라인 상태와 무관하게 고정됩니다.
사용자당 is_default = True 인 레코드는 최대 하나입니다.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trashdrop.models.base import BaseModel


class LocationTypeEnum(enum.Enum):
    HOME = "home"
    WORK = "work"
    SCHOOL = "school"
    OTHER = "other"


class UserLocation(BaseModel):
    __tablename__ = "user_locations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    location_type: Mapped[LocationTypeEnum] = mapped_column(
        Enum(LocationTypeEnum, values_callable=lambda e: [m.value for m in e]),
        default=LocationTypeEnum.HOME,
        nullable=False,
    )
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pickup_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_pickup_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # opaque storage reference, upload happens elsewhere
    photo_ref: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
