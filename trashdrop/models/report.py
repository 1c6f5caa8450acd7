"""
불법 투기 신고

신고자는 위치/사진/규모를 제출하고, 수거원이나 관리자가 처리 상태를 변경합니다.
payment 는 규모(size)에 따라 정해지는 수거원 보상입니다.
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from trashdrop.models.base import BaseModel
from trashdrop.models.points import new_uuid


class ReportSizeEnum(enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ReportPriorityEnum(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReportStatusEnum(enum.Enum):
    PENDING = "pending"
    CRITICAL = "critical"
    IN_PROGRESS = "in_progress"
    CLEANED = "cleaned"
    REJECTED = "rejected"


class DumpingReport(BaseModel):
    __tablename__ = "dumping_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    # hidden from other users when is_anonymous
    reporter_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    trash_type: Mapped[str] = mapped_column(String(50), nullable=False)
    size: Mapped[ReportSizeEnum] = mapped_column(
        Enum(ReportSizeEnum, values_callable=lambda e: [m.value for m in e]),
        default=ReportSizeEnum.MEDIUM,
        nullable=False,
    )
    priority: Mapped[ReportPriorityEnum] = mapped_column(
        Enum(ReportPriorityEnum, values_callable=lambda e: [m.value for m in e]),
        default=ReportPriorityEnum.MEDIUM,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photos: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    payment: Mapped[int] = mapped_column(Integer, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[ReportStatusEnum] = mapped_column(
        Enum(ReportStatusEnum, values_callable=lambda e: [m.value for m in e]),
        default=ReportStatusEnum.PENDING,
        nullable=False,
    )
    collector_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
