from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class LocationType(str, Enum):
    HOME = "home"
    WORK = "work"
    SCHOOL = "school"
    OTHER = "other"


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationCreate(BaseModel):
    """위치 생성 요청 - id가 없으면 클라이언트/서버에서 UUID 생성"""

    id: Optional[str] = Field(None, max_length=36, description="클라이언트 생성 ID")
    name: str = Field(..., min_length=1, max_length=200, description="위치 이름")
    address: str = Field(..., min_length=1, description="주소")
    coordinates: Coordinates
    location_type: LocationType = LocationType.HOME
    is_default: bool = False
    notes: Optional[str] = None
    pickup_instructions: Optional[str] = None
    photo_ref: Optional[str] = None
    updated_at: Optional[datetime] = Field(None, description="클라이언트 변경 시각")


class LocationUpdate(BaseModel):
    """부분 업데이트 - 지정된 필드만 변경"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, min_length=1)
    coordinates: Optional[Coordinates] = None
    location_type: Optional[LocationType] = None
    notes: Optional[str] = None
    pickup_instructions: Optional[str] = None
    photo_ref: Optional[str] = None
    updated_at: Optional[datetime] = Field(None, description="클라이언트 변경 시각")


class LocationRecord(BaseModel):
    """위치 레코드 (서버 정본 + 로컬 전용 플래그)"""

    id: str
    user_id: str
    name: str
    address: str
    coordinates: Coordinates
    location_type: LocationType = LocationType.HOME
    is_default: bool = False
    notes: Optional[str] = None
    pickup_instructions: Optional[str] = None
    last_pickup_date: Optional[datetime] = None
    photo_ref: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # local-only
    pending_sync: bool = False
    is_deleted: bool = False

    class Config:
        from_attributes = True


class LocationListResult(BaseModel):
    data: List[LocationRecord] = Field(default_factory=list)
    offline: bool = False


class LocationMutationResult(BaseModel):
    success: bool
    offline: bool = False
    data: Optional[LocationRecord] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class DeleteResultResponse(BaseModel):
    success: bool
    message: str
