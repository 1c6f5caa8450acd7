from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session

from trashdrop.models.pickup import (
    Bag as BagModel,
    PickupFrequencyEnum,
    PickupRequest as PickupRequestModel,
    PickupSchedule as PickupScheduleModel,
    PickupStatusEnum,
)
from trashdrop.repositories.base import BaseRepository
from trashdrop.schemas.pickup import BagResponse, PickupRequestResponse, PickupScheduleResponse
from trashdrop.utils.date_utils import format_timestamp


class PickupRepository(BaseRepository[PickupRequestModel, PickupRequestResponse]):
    """픽업 요청 및 봉투 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(PickupRequestModel, PickupRequestResponse, db)

    def _to_schema(self, model_instance: PickupRequestModel) -> Optional[PickupRequestResponse]:
        if model_instance is None:
            return None

        status = model_instance.status
        data = {
            "id": model_instance.id,
            "user_id": model_instance.user_id,
            "location_id": model_instance.location_id,
            "address": model_instance.address,
            "latitude": model_instance.latitude,
            "longitude": model_instance.longitude,
            "waste_type": model_instance.waste_type,
            "bag_count": model_instance.bag_count,
            "fee": model_instance.fee,
            "special_instructions": model_instance.special_instructions,
            "status": status.value if isinstance(status, PickupStatusEnum) else str(status),
            "collector_id": model_instance.collector_id,
            "accepted_at": format_timestamp(model_instance.accepted_at),
            "completed_at": format_timestamp(model_instance.completed_at),
            "created_at": format_timestamp(model_instance.created_at) or "",
        }
        return PickupRequestResponse(**data)

    def _to_bag_response(self, model_instance: BagModel) -> Optional[BagResponse]:
        if model_instance is None:
            return None
        return BagResponse(
            id=model_instance.id,
            request_id=model_instance.request_id,
            bag_type=model_instance.bag_type,
            scanned_at=format_timestamp(model_instance.scanned_at) or "",
        )

    def create_request(self, commit: bool = True, **kwargs) -> PickupRequestResponse:
        return self.create(commit=commit, status=PickupStatusEnum.PENDING, **kwargs)

    def get_request(self, request_id: str) -> Optional[PickupRequestResponse]:
        return self.get_by_id(request_id)

    def list_for_user(
        self, user_id: str, status: Optional[PickupStatusEnum] = None
    ) -> List[PickupRequestResponse]:
        """최신순"""
        query = self.db.query(self.model_class).filter(self.model_class.user_id == user_id)
        if status is not None:
            query = query.filter(self.model_class.status == status)
        instances = query.order_by(desc(self.model_class.created_at)).all()
        return [self._to_schema(instance) for instance in instances]

    def update_status(
        self,
        request_id: str,
        status: PickupStatusEnum,
        collector_id: Optional[str] = None,
        accepted_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> Optional[PickupRequestResponse]:
        changes = {"status": status}
        if collector_id is not None:
            changes["collector_id"] = collector_id
        if accepted_at is not None:
            changes["accepted_at"] = accepted_at
        if completed_at is not None:
            changes["completed_at"] = completed_at
        return self.update(request_id, commit=commit, **changes)

    def get_bag(self, bag_id: str) -> Optional[BagResponse]:
        instance = self.db.query(BagModel).filter(BagModel.id == bag_id).first()
        return self._to_bag_response(instance)

    def add_bag(
        self, bag_id: str, request_id: str, bag_type: str, commit: bool = True
    ) -> BagResponse:
        instance = BagModel(id=bag_id, request_id=request_id, bag_type=bag_type)
        self.db.add(instance)
        self._flush(instance, commit)
        return self._to_bag_response(instance)

    def list_bags(self, request_id: str) -> List[BagResponse]:
        instances = (
            self.db.query(BagModel)
            .filter(BagModel.request_id == request_id)
            .order_by(asc(BagModel.scanned_at))
            .all()
        )
        return [self._to_bag_response(instance) for instance in instances]

    def list_bags_for_owner(self, user_id: str) -> List[BagResponse]:
        """내 픽업 요청에 등록된 모든 봉투"""
        instances = (
            self.db.query(BagModel)
            .join(PickupRequestModel, BagModel.request_id == PickupRequestModel.id)
            .filter(PickupRequestModel.user_id == user_id)
            .order_by(desc(BagModel.scanned_at))
            .all()
        )
        return [self._to_bag_response(instance) for instance in instances]

    def list_bags_for_collector(self, collector_id: str) -> List[BagResponse]:
        """수거원에게 배정된 픽업의 봉투"""
        instances = (
            self.db.query(BagModel)
            .join(PickupRequestModel, BagModel.request_id == PickupRequestModel.id)
            .filter(PickupRequestModel.collector_id == collector_id)
            .order_by(desc(BagModel.scanned_at))
            .all()
        )
        return [self._to_bag_response(instance) for instance in instances]

    def used_bags_by_type(self, user_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(BagModel.bag_type, func.count(BagModel.id))
            .join(PickupRequestModel, BagModel.request_id == PickupRequestModel.id)
            .filter(PickupRequestModel.user_id == user_id)
            .group_by(BagModel.bag_type)
            .all()
        )
        return {bag_type: count for bag_type, count in rows}

    # Recurring schedules

    def _to_schedule_response(
        self, model_instance: PickupScheduleModel
    ) -> Optional[PickupScheduleResponse]:
        if model_instance is None:
            return None
        frequency = model_instance.frequency
        return PickupScheduleResponse(
            id=model_instance.id,
            user_id=model_instance.user_id,
            location_id=model_instance.location_id,
            address=model_instance.address,
            latitude=model_instance.latitude,
            longitude=model_instance.longitude,
            waste_type=model_instance.waste_type,
            bag_count=model_instance.bag_count,
            fee=model_instance.fee,
            frequency=frequency.value if isinstance(frequency, PickupFrequencyEnum) else str(frequency),
            start_date=model_instance.start_date,
            active=model_instance.active,
            created_at=format_timestamp(model_instance.created_at) or "",
        )

    def create_schedule(self, commit: bool = True, **kwargs) -> PickupScheduleResponse:
        instance = PickupScheduleModel(active=True, **kwargs)
        self.db.add(instance)
        self._flush(instance, commit)
        return self._to_schedule_response(instance)

    def list_schedules(self, user_id: Optional[str] = None) -> List[PickupScheduleResponse]:
        """활성 정기 픽업 - user_id 가 없으면 전체"""
        query = self.db.query(PickupScheduleModel).filter(PickupScheduleModel.active.is_(True))
        if user_id is not None:
            query = query.filter(PickupScheduleModel.user_id == user_id)
        instances = query.order_by(asc(PickupScheduleModel.start_date)).all()
        return [self._to_schedule_response(instance) for instance in instances]
