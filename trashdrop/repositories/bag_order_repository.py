from typing import Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from trashdrop.models.bag_order import BagOrder as BagOrderModel, BagOrderStatusEnum
from trashdrop.repositories.base import BaseRepository
from trashdrop.schemas.bag_order import BagOrderItem, BagOrderResponse
from trashdrop.utils.date_utils import format_timestamp


class BagOrderRepository(BaseRepository[BagOrderModel, BagOrderResponse]):
    """봉투 주문 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(BagOrderModel, BagOrderResponse, db)

    def _to_schema(self, model_instance: BagOrderModel) -> Optional[BagOrderResponse]:
        if model_instance is None:
            return None

        status = model_instance.status
        return BagOrderResponse(
            id=model_instance.id,
            tracking_id=model_instance.tracking_id,
            user_id=model_instance.user_id,
            location_id=model_instance.location_id,
            delivery_address=model_instance.delivery_address,
            items=[BagOrderItem(**item) for item in model_instance.items or []],
            quantity=model_instance.quantity,
            notes=model_instance.notes,
            status=status.value if isinstance(status, BagOrderStatusEnum) else str(status),
            estimated_delivery=model_instance.estimated_delivery,
            created_at=format_timestamp(model_instance.created_at) or "",
        )

    def create_order(self, commit: bool = True, **kwargs) -> BagOrderResponse:
        return self.create(commit=commit, status=BagOrderStatusEnum.PENDING, **kwargs)

    def get_by_tracking_id(self, tracking_id: str) -> Optional[BagOrderResponse]:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.tracking_id == tracking_id)
            .first()
        )
        return self._to_schema(instance)

    def list_for_user(self, user_id: str) -> List[BagOrderResponse]:
        """최신순"""
        instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.created_at))
            .all()
        )
        return [self._to_schema(instance) for instance in instances]

    def ordered_by_type(self, user_id: str) -> Dict[str, int]:
        """취소되지 않은 주문의 봉투 종류별 합계"""
        instances = (
            self.db.query(self.model_class)
            .filter(
                self.model_class.user_id == user_id,
                self.model_class.status != BagOrderStatusEnum.CANCELLED,
            )
            .all()
        )
        totals: Dict[str, int] = {}
        for instance in instances:
            for item in instance.items or []:
                totals[item["bag_type"]] = totals.get(item["bag_type"], 0) + item["quantity"]
        return totals
