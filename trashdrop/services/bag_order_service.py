import logging
import uuid
from datetime import date, timedelta
from typing import Dict, Optional, Set

from sqlalchemy.orm import Session

from trashdrop.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotFoundError,
    RecordNotFoundError,
    ValidationError,
)
from trashdrop.models.bag_order import BagOrderStatusEnum
from trashdrop.repositories.bag_order_repository import BagOrderRepository
from trashdrop.repositories.location_repository import LocationRepository
from trashdrop.repositories.pickup_repository import PickupRepository
from trashdrop.schemas.bag_order import (
    BagCountResponse,
    BagOrderCreate,
    BagOrderListResponse,
    BagOrderResponse,
)
from trashdrop.schemas.pickup import UserBagListResponse
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.accrual_rules import normalize_category

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS: Dict[BagOrderStatusEnum, Set[BagOrderStatusEnum]] = {
    BagOrderStatusEnum.PENDING: {BagOrderStatusEnum.SHIPPED, BagOrderStatusEnum.CANCELLED},
    BagOrderStatusEnum.SHIPPED: {BagOrderStatusEnum.DELIVERED},
    BagOrderStatusEnum.DELIVERED: set(),
    BagOrderStatusEnum.CANCELLED: set(),
}


def new_tracking_id() -> str:
    return "TD-" + uuid.uuid4().hex[:10].upper()


def _parse_status(status: str) -> BagOrderStatusEnum:
    try:
        return BagOrderStatusEnum(status)
    except ValueError:
        raise ValidationError(f"Invalid order status: {status}")


class BagOrderService:
    """
    봉투 주문과 보유 봉투 수

    보유 봉투 = 취소되지 않은 주문 수량 - 내 픽업에 등록된 봉투 수 (0 미만이면 0)
    """

    def __init__(self, db: Session, delivery_days: int = 3):
        self.db = db
        self.order_repo = BagOrderRepository(db)
        self.location_repo = LocationRepository(db)
        self.pickup_repo = PickupRepository(db)
        self.delivery_days = delivery_days

    def order_bags(
        self, user_id: str, request: BagOrderCreate, today: Optional[date] = None
    ) -> BagOrderResponse:
        location = self.location_repo.get_for_user(request.location_id, user_id)
        if location is None:
            raise RecordNotFoundError(
                f"Location not found: {request.location_id}",
                details={"location_id": request.location_id},
            )

        # 정규화 후 같은 종류가 된 항목은 합산
        merged: Dict[str, int] = {}
        for item in request.items:
            bag_type = normalize_category(item.bag_type)
            merged[bag_type] = merged.get(bag_type, 0) + item.quantity
        items = [{"bag_type": bag_type, "quantity": qty} for bag_type, qty in merged.items()]

        today = today or date.today()
        order = self.order_repo.create_order(
            tracking_id=new_tracking_id(),
            user_id=user_id,
            location_id=location.id,
            delivery_address=location.address,
            items=items,
            quantity=sum(merged.values()),
            notes=request.notes,
            estimated_delivery=today + timedelta(days=self.delivery_days),
        )
        logger.info(f"Bag order {order.tracking_id} ({order.quantity} bags) placed by user {user_id}")
        return order

    def list_orders(self, user_id: str) -> BagOrderListResponse:
        orders = self.order_repo.list_for_user(user_id)
        return BagOrderListResponse(orders=orders, total_count=len(orders))

    def get_by_tracking(self, tracking_id: str, actor: AuthenticatedUser) -> BagOrderResponse:
        """주문자 또는 관리자만 조회 - 그 외에는 존재 여부도 숨김"""
        order = self.order_repo.get_by_tracking_id(tracking_id)
        if order is None or (order.user_id != actor.id and not actor.is_admin):
            raise NotFoundError(f"Bag order not found: {tracking_id}")
        return order

    def update_status(
        self, tracking_id: str, new_status: str, actor: AuthenticatedUser
    ) -> BagOrderResponse:
        """
        pending -> shipped | cancelled
        shipped -> delivered

        주문자는 pending 주문의 취소만 가능합니다.
        """
        target = _parse_status(new_status)
        order = self.get_by_tracking(tracking_id, actor)

        if not actor.is_admin and target != BagOrderStatusEnum.CANCELLED:
            raise AuthorizationError("Only staff can ship or deliver bag orders")

        current = BagOrderStatusEnum(order.status)
        if target not in ORDER_TRANSITIONS[current]:
            raise BusinessLogicError(
                error_code="BAG_001",
                message=f"Cannot change order status from {current.value} to {target.value}",
                details={"from": current.value, "to": target.value},
            )

        updated = self.order_repo.update(order.id, status=target)
        logger.info(f"Bag order {tracking_id}: {current.value} -> {target.value}")
        return updated

    def get_bag_count(self, user_id: str) -> BagCountResponse:
        ordered_by_type = self.order_repo.ordered_by_type(user_id)
        used_by_type = self.pickup_repo.used_bags_by_type(user_id)

        ordered = sum(ordered_by_type.values())
        used = sum(used_by_type.values())
        by_type = {
            bag_type: max(quantity - used_by_type.get(bag_type, 0), 0)
            for bag_type, quantity in ordered_by_type.items()
        }
        return BagCountResponse(
            ordered=ordered,
            used=used,
            available=max(ordered - used, 0),
            available_by_type=by_type,
        )

    def list_user_bags(self, actor: AuthenticatedUser) -> UserBagListResponse:
        """수거원은 배정된 픽업의 봉투, 일반 사용자는 내 픽업의 봉투"""
        if actor.is_collector:
            bags = self.pickup_repo.list_bags_for_collector(actor.id)
        else:
            bags = self.pickup_repo.list_bags_for_owner(actor.id)
        return UserBagListResponse(bags=bags, total_count=len(bags))
