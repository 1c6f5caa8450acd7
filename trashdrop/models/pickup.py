import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from trashdrop.models.base import Base, BaseModel
from trashdrop.models.points import new_uuid
from trashdrop.utils.date_utils import utcnow


class PickupStatusEnum(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PickupRequest(BaseModel):
    __tablename__ = "pickup_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    location_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("user_locations.id", ondelete="SET NULL"), nullable=True
    )
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    waste_type: Mapped[str] = mapped_column(String(50), nullable=False)
    bag_count: Mapped[int] = mapped_column(Integer, nullable=False)
    fee: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[PickupStatusEnum] = mapped_column(
        Enum(PickupStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=PickupStatusEnum.PENDING,
        nullable=False,
    )
    collector_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class Bag(Base):
    """id is the scanned bag code"""

    __tablename__ = "bags"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pickup_requests.id"), nullable=False, index=True
    )
    bag_type: Mapped[str] = mapped_column(String(50), nullable=False)
    scanned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class PickupFrequencyEnum(enum.Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class PickupSchedule(BaseModel):
    """정기 픽업 - start_date 부터 frequency 간격으로 반복"""

    __tablename__ = "pickup_schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    location_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("user_locations.id", ondelete="SET NULL"), nullable=True
    )
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    waste_type: Mapped[str] = mapped_column(String(50), nullable=False)
    bag_count: Mapped[int] = mapped_column(Integer, nullable=False)
    fee: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    frequency: Mapped[PickupFrequencyEnum] = mapped_column(
        Enum(PickupFrequencyEnum, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
