from typing import List, Optional

from pydantic import BaseModel, Field

from trashdrop.schemas.location import Coordinates


class DumpingReportCreate(BaseModel):
    """불법 투기 신고"""

    location: str = Field("Reported illegal dumping", min_length=1, max_length=200)
    coordinates: Coordinates
    trash_type: str = Field("household", min_length=1, max_length=50, description="폐기물 종류")
    size: str = Field("medium", pattern="^(small|medium|large)$")
    priority: str = Field("medium", pattern="^(low|medium|high)$")
    description: Optional[str] = Field(None, max_length=2000)
    photos: List[str] = Field(default_factory=list, max_length=10, description="업로드된 사진 URL")
    is_anonymous: bool = False


class ReportStatusUpdate(BaseModel):
    status: str = Field(
        ...,
        pattern="^(critical|in_progress|cleaned|rejected)$",
        description="critical | in_progress | cleaned | rejected",
    )


class DumpingReportResponse(BaseModel):
    id: str
    reporter_id: Optional[str] = Field(None, description="익명 신고는 본인에게만 표시")
    location: str
    latitude: float
    longitude: float
    trash_type: str
    size: str
    priority: str
    description: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    payment: int
    is_anonymous: bool
    status: str
    collector_id: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class DumpingReportListResponse(BaseModel):
    reports: List[DumpingReportResponse]
    total_count: int
