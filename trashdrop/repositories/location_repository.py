import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from trashdrop.core.exceptions import ConflictError
from trashdrop.models.location import LocationTypeEnum, UserLocation as UserLocationModel
from trashdrop.repositories.base import BaseRepository
from trashdrop.schemas.location import Coordinates, LocationCreate, LocationRecord
from trashdrop.utils.date_utils import as_utc, utcnow

UPDATABLE_FIELDS = (
    "name",
    "address",
    "location_type",
    "notes",
    "pickup_instructions",
    "photo_ref",
)


class LocationRepository(BaseRepository[UserLocationModel, LocationRecord]):
    """사용자 위치 리포지토리 - 모든 조회/변경은 소유자(user_id) 범위 안에서만 수행"""

    def __init__(self, db: Session):
        super().__init__(UserLocationModel, LocationRecord, db)

    def _to_schema(self, model_instance: UserLocationModel) -> Optional[LocationRecord]:
        if model_instance is None:
            return None

        location_type = model_instance.location_type
        return LocationRecord(
            id=model_instance.id,
            user_id=model_instance.user_id,
            name=model_instance.name,
            address=model_instance.address,
            coordinates=Coordinates(
                latitude=model_instance.latitude, longitude=model_instance.longitude
            ),
            location_type=(
                location_type.value
                if isinstance(location_type, LocationTypeEnum)
                else location_type
            ),
            is_default=bool(model_instance.is_default),
            notes=model_instance.notes,
            pickup_instructions=model_instance.pickup_instructions,
            last_pickup_date=model_instance.last_pickup_date,
            photo_ref=model_instance.photo_ref,
            created_at=model_instance.created_at,
            updated_at=model_instance.updated_at,
        )

    def _get_owned(self, location_id: str, user_id: str) -> Optional[UserLocationModel]:
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.id == location_id,
                self.model_class.user_id == user_id,
            )
            .first()
        )

    def _unset_defaults(self, user_id: str, except_id: Optional[str] = None) -> None:
        query = self.db.query(self.model_class).filter(
            self.model_class.user_id == user_id,
            self.model_class.is_default.is_(True),
        )
        if except_id:
            query = query.filter(self.model_class.id != except_id)
        query.update({self.model_class.is_default: False}, synchronize_session="fetch")

    def list_for_user(self, user_id: str) -> List[LocationRecord]:
        """기본 위치 먼저, 그 다음 생성순"""
        instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.is_default), asc(self.model_class.created_at))
            .all()
        )
        return [self._to_schema(instance) for instance in instances]

    def get_for_user(self, location_id: str, user_id: str) -> Optional[LocationRecord]:
        return self._to_schema(self._get_owned(location_id, user_id))

    def create_location(
        self, user_id: str, data: LocationCreate, commit: bool = True
    ) -> LocationRecord:
        """
        위치 생성

        - id 가 이미 같은 사용자 소유로 존재하면 기존 레코드를 반환 (재전송된 create)
        - is_default=True 이면 같은 트랜잭션에서 다른 기본 위치를 해제
        """
        location_id = data.id or str(uuid.uuid4())

        existing = self._get_model(location_id)
        if existing is not None:
            if existing.user_id != user_id:
                raise ConflictError(
                    "Location id already in use", details={"location_id": location_id}
                )
            return self._to_schema(existing)

        if data.is_default:
            self._unset_defaults(user_id)

        timestamp = as_utc(data.updated_at) or utcnow()
        instance = self.model_class(
            id=location_id,
            user_id=user_id,
            name=data.name,
            address=data.address,
            latitude=data.coordinates.latitude,
            longitude=data.coordinates.longitude,
            location_type=LocationTypeEnum(data.location_type.value),
            is_default=data.is_default,
            notes=data.notes,
            pickup_instructions=data.pickup_instructions,
            photo_ref=data.photo_ref,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.db.add(instance)
        self._flush(instance, commit)
        return self._to_schema(instance)

    def update_location(
        self,
        location_id: str,
        user_id: str,
        changes: Dict[str, Any],
        updated_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> Optional[LocationRecord]:
        """지정된 필드만 변경 (없으면 None)"""
        instance = self._get_owned(location_id, user_id)
        if instance is None:
            return None

        for key in UPDATABLE_FIELDS:
            if key in changes and changes[key] is not None:
                value = changes[key]
                if key == "location_type":
                    value = LocationTypeEnum(getattr(value, "value", value))
                setattr(instance, key, value)

        coordinates = changes.get("coordinates")
        if coordinates:
            if isinstance(coordinates, Coordinates):
                coordinates = coordinates.model_dump()
            instance.latitude = coordinates["latitude"]
            instance.longitude = coordinates["longitude"]

        instance.updated_at = as_utc(updated_at) or utcnow()
        self._flush(instance, commit)
        return self._to_schema(instance)

    def delete_location(self, location_id: str, user_id: str, commit: bool = True) -> bool:
        instance = self._get_owned(location_id, user_id)
        if instance is None:
            return False

        self.db.delete(instance)
        self._flush(None, commit)
        return True

    def set_default(
        self, location_id: str, user_id: str, commit: bool = True
    ) -> Optional[LocationRecord]:
        """기존 기본 위치 해제와 새 기본 위치 지정을 하나의 트랜잭션으로 수행"""
        instance = self._get_owned(location_id, user_id)
        if instance is None:
            return None

        try:
            self._unset_defaults(user_id, except_id=location_id)
            instance.is_default = True
            instance.updated_at = utcnow()
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._to_schema(instance)

    def mark_picked_up(
        self, location_id: str, user_id: str, when: datetime, commit: bool = True
    ) -> Optional[LocationRecord]:
        instance = self._get_owned(location_id, user_id)
        if instance is None:
            return None

        instance.last_pickup_date = when
        self._flush(instance, commit)
        return self._to_schema(instance)

    def count_defaults(self, user_id: str) -> int:
        return self.count({"user_id": user_id, "is_default": True})
