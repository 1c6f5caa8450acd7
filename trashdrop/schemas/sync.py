from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from trashdrop.schemas.location import LocationRecord

# keys a queued create/update payload may carry
PAYLOAD_FIELDS = frozenset(
    {
        "id",
        "name",
        "address",
        "coordinates",
        "location_type",
        "is_default",
        "notes",
        "pickup_instructions",
        "photo_ref",
        "updated_at",
    }
)


class MutationOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SET_DEFAULT = "set_default"


class PendingMutation(BaseModel):
    """오프라인 큐 항목 - 같은 location_id 안에서는 seq 순서가 유지됨"""

    seq: int = Field(0, ge=0, description="로컬 단조 증가 시퀀스")
    operation: MutationOperation
    location_id: str = Field(..., min_length=1)
    user_id: str = Field("", description="서버 배치 동기화에서는 토큰의 사용자로 대체")
    payload: Dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(..., description="클라이언트 변경 시각")
    attempts: int = 0
    last_error: Optional[str] = None

    @field_validator("payload")
    @classmethod
    def known_fields_only(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(v) - PAYLOAD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown payload fields: {', '.join(unknown)}")
        return v


class SyncError(BaseModel):
    location_id: str
    operation: MutationOperation
    error: str
    code: Optional[str] = None
    retained: bool = Field(False, description="True면 큐에 남아 다음 동기화에서 재시도")


class SyncReport(BaseModel):
    success: bool = True
    created: List[LocationRecord] = Field(default_factory=list)
    updated: List[LocationRecord] = Field(default_factory=list)
    deleted: List[str] = Field(default_factory=list)
    errors: List[SyncError] = Field(default_factory=list)
    remaining: int = 0


class LocationSyncRequest(BaseModel):
    mutations: List[PendingMutation] = Field(default_factory=list)


class LocationSyncResponse(BaseModel):
    report: SyncReport
    locations: List[LocationRecord]
