"""
봉투 주문 API 라우터

- POST /bags/orders: 봉투 주문 (저장된 위치로 배송)
- GET /bags/orders: 내 주문 목록
- GET /bags/orders/{tracking_id}: 운송장 번호로 주문 조회
- PATCH /bags/orders/{tracking_id}/status: 주문 상태 변경
- GET /bags/count: 남은 봉투 수
- GET /bags/my: 내 봉투 (수거원은 배정된 픽업의 봉투)
"""

from fastapi import APIRouter, Depends, Path, status

from trashdrop.core.security import get_current_user
from trashdrop.deps import get_bag_order_service
from trashdrop.schemas.bag_order import (
    BagCountResponse,
    BagOrderCreate,
    BagOrderListResponse,
    BagOrderResponse,
    BagOrderStatusUpdate,
)
from trashdrop.schemas.pickup import UserBagListResponse
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.bag_order_service import BagOrderService

router = APIRouter(prefix="/bags", tags=["bags"])


@router.post("/orders", response_model=BagOrderResponse, status_code=status.HTTP_201_CREATED)
def order_bags(
    request: BagOrderCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    bag_order_service: BagOrderService = Depends(get_bag_order_service),
) -> BagOrderResponse:
    """
    봉투 주문

    배송지는 저장된 위치의 주소이며, 같은 종류의 봉투 항목은 합산됩니다.

    HTTP Status:
        201: 주문됨 (tracking_id, estimated_delivery 포함)
        404: 위치가 없거나 내 위치가 아님
        422: 입력 검증 실패
    """
    return bag_order_service.order_bags(current_user.id, request)


@router.get("/orders", response_model=BagOrderListResponse)
def list_orders(
    current_user: AuthenticatedUser = Depends(get_current_user),
    bag_order_service: BagOrderService = Depends(get_bag_order_service),
) -> BagOrderListResponse:
    return bag_order_service.list_orders(current_user.id)


@router.get("/orders/{tracking_id}", response_model=BagOrderResponse)
def get_order(
    tracking_id: str = Path(..., description="운송장 번호"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    bag_order_service: BagOrderService = Depends(get_bag_order_service),
) -> BagOrderResponse:
    return bag_order_service.get_by_tracking(tracking_id, current_user)


@router.patch("/orders/{tracking_id}/status", response_model=BagOrderResponse)
def update_order_status(
    request: BagOrderStatusUpdate,
    tracking_id: str = Path(..., description="운송장 번호"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    bag_order_service: BagOrderService = Depends(get_bag_order_service),
) -> BagOrderResponse:
    """
    주문 상태 변경

    pending -> shipped | cancelled, shipped -> delivered.
    주문자는 pending 주문의 취소만 가능합니다.

    HTTP Status:
        200: 변경됨
        400: 허용되지 않는 상태 변경 (BAG_001)
        403: 권한 없음
    """
    return bag_order_service.update_status(tracking_id, request.status, current_user)


@router.get("/count", response_model=BagCountResponse)
def get_bag_count(
    current_user: AuthenticatedUser = Depends(get_current_user),
    bag_order_service: BagOrderService = Depends(get_bag_order_service),
) -> BagCountResponse:
    return bag_order_service.get_bag_count(current_user.id)


@router.get("/my", response_model=UserBagListResponse)
def list_my_bags(
    current_user: AuthenticatedUser = Depends(get_current_user),
    bag_order_service: BagOrderService = Depends(get_bag_order_service),
) -> UserBagListResponse:
    return bag_order_service.list_user_bags(current_user)
