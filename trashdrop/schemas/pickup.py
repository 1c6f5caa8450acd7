from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from trashdrop.schemas.location import Coordinates


class PickupRequestCreate(BaseModel):
    """픽업 요청 생성 - location_id가 있으면 저장된 위치의 주소/좌표 사용"""

    location_id: Optional[str] = Field(None, description="저장된 위치 ID")
    address: Optional[str] = Field(None, min_length=1, description="주소 (location_id 없을 때 필수)")
    coordinates: Optional[Coordinates] = None
    waste_type: str = Field(..., min_length=1, max_length=50, description="폐기물 종류")
    bag_count: int = Field(..., ge=1, le=50, description="봉투 수")
    fee: int = Field(0, ge=0, description="수수료")
    special_instructions: Optional[str] = None


class PickupStatusUpdate(BaseModel):
    status: str = Field(
        ...,
        pattern="^(accepted|in_progress|completed|cancelled)$",
        description="accepted | in_progress | completed | cancelled",
    )


class PickupRequestResponse(BaseModel):
    id: str
    user_id: str
    location_id: Optional[str] = None
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    waste_type: str
    bag_count: int
    fee: int
    special_instructions: Optional[str] = None
    status: str
    collector_id: Optional[str] = None
    accepted_at: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: str
    points_awarded: Optional[int] = Field(None, description="완료 시 적립된 포인트")


class PickupListResponse(BaseModel):
    requests: List[PickupRequestResponse]
    total_count: int


class BagRegisterRequest(BaseModel):
    bag_id: str = Field(..., min_length=1, max_length=64, description="스캔한 봉투 코드")
    bag_type: str = Field("general", min_length=1, max_length=50, description="봉투 종류")


class BagResponse(BaseModel):
    id: str
    request_id: str
    bag_type: str
    scanned_at: str
    points_awarded: Optional[int] = None


class BagListResponse(BaseModel):
    bags: List[BagResponse]
    total_count: int


class BagVerifyResponse(BaseModel):
    valid: bool
    bag: Optional[BagResponse] = None


class PickupScheduleCreate(BaseModel):
    """정기 픽업 등록 - location_id 가 없으면 address 와 coordinates 필수"""

    location_id: Optional[str] = Field(None, description="저장된 위치 ID")
    address: Optional[str] = Field(None, min_length=1)
    coordinates: Optional[Coordinates] = None
    waste_type: str = Field("general", min_length=1, max_length=50)
    bag_count: int = Field(1, ge=1, le=50)
    fee: int = Field(5, ge=0)
    frequency: str = Field(..., pattern="^(weekly|biweekly|monthly)$")
    start_date: date = Field(..., description="첫 픽업 날짜")


class PickupScheduleResponse(BaseModel):
    id: str
    user_id: str
    location_id: Optional[str] = None
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    waste_type: str
    bag_count: int
    fee: int
    frequency: str
    start_date: date
    active: bool
    next_pickup_dates: List[date] = Field(default_factory=list, description="다가오는 픽업 날짜")
    created_at: str


class PickupScheduleListResponse(BaseModel):
    schedules: List[PickupScheduleResponse]
    total_count: int


class UserBagListResponse(BaseModel):
    bags: List[BagResponse]
    total_count: int
