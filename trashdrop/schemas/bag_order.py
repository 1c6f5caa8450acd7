from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class BagOrderItem(BaseModel):
    bag_type: str = Field("general", min_length=1, max_length=50, description="봉투 종류")
    quantity: int = Field(..., ge=1, le=50, description="수량")


class BagOrderCreate(BaseModel):
    """봉투 주문 - 배송지는 저장된 위치 중 하나"""

    location_id: str = Field(..., min_length=1, description="배송지 (저장된 위치 ID)")
    items: List[BagOrderItem] = Field(..., min_length=1, max_length=10)
    notes: Optional[str] = Field(None, max_length=500, description="배송 메모")

    @field_validator("items")
    @classmethod
    def validate_unique_types(cls, v: List[BagOrderItem]) -> List[BagOrderItem]:
        types = [item.bag_type.strip().lower() for item in v]
        if len(types) != len(set(types)):
            raise ValueError("Each bag type may appear only once per order")
        return v


class BagOrderStatusUpdate(BaseModel):
    status: str = Field(
        ...,
        pattern="^(shipped|delivered|cancelled)$",
        description="shipped | delivered | cancelled",
    )


class BagOrderResponse(BaseModel):
    id: str
    tracking_id: str
    user_id: str
    location_id: Optional[str] = None
    delivery_address: str
    items: List[BagOrderItem]
    quantity: int
    notes: Optional[str] = None
    status: str
    estimated_delivery: date
    created_at: str


class BagOrderListResponse(BaseModel):
    orders: List[BagOrderResponse]
    total_count: int


class BagCountResponse(BaseModel):
    """주문한 봉투 - 사용한(등록한) 봉투 = 남은 봉투 (취소된 주문 제외)"""

    ordered: int
    used: int
    available: int
    available_by_type: Dict[str, int] = Field(default_factory=dict)
