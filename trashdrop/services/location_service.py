import logging
from typing import List

from sqlalchemy.orm import Session

from trashdrop.core.exceptions import RecordNotFoundError
from trashdrop.providers.connectivity import ConnectivityMonitor
from trashdrop.providers.local_store.memory import InMemoryLocalStore
from trashdrop.providers.location_gateway.repository_gateway import RepositoryLocationGateway
from trashdrop.schemas.location import LocationCreate, LocationRecord, LocationUpdate
from trashdrop.schemas.sync import LocationSyncRequest, LocationSyncResponse
from trashdrop.services.offline_reconciler import OfflineReconciler

logger = logging.getLogger(__name__)


class LocationService:
    """사용자 위치 관리 (서버 측)"""

    def __init__(self, db: Session):
        self.db = db
        self.gateway = RepositoryLocationGateway(db)

    def list_locations(self, user_id: str) -> List[LocationRecord]:
        return self.gateway.list_locations(user_id)

    def get_location(self, location_id: str, user_id: str) -> LocationRecord:
        record = self.gateway.get_location(location_id, user_id)
        if record is None:
            raise RecordNotFoundError(
                f"Location not found: {location_id}", details={"location_id": location_id}
            )
        return record

    def create_location(self, user_id: str, data: LocationCreate) -> LocationRecord:
        record = self.gateway.create_location(user_id, data)
        logger.info(f"Created location {record.id} for user {user_id}")
        return record

    def update_location(
        self, location_id: str, user_id: str, changes: LocationUpdate
    ) -> LocationRecord:
        record = self.gateway.update_location(location_id, user_id, changes)
        logger.info(f"Updated location {location_id} for user {user_id}")
        return record

    def delete_location(self, location_id: str, user_id: str) -> None:
        self.gateway.delete_location(location_id, user_id)
        logger.info(f"Deleted location {location_id} for user {user_id}")

    def set_default(self, location_id: str, user_id: str) -> LocationRecord:
        """기존 기본 위치 해제 + 새 기본 위치 지정 (하나의 트랜잭션)"""
        record = self.gateway.set_default(location_id, user_id)
        logger.info(f"Location {location_id} is now the default for user {user_id}")
        return record

    def sync_batch(self, user_id: str, request: LocationSyncRequest) -> LocationSyncResponse:
        """
        클라이언트가 오프라인 동안 쌓은 변경을 한 번에 반영

        클라이언트 라이브러리와 같은 OfflineReconciler 를 데이터베이스 게이트웨이와
        메모리 큐로 실행합니다. 모든 변경의 user_id 는 인증된 사용자로 대체됩니다.
        """
        reconciler = OfflineReconciler(
            gateway=self.gateway,
            local_store=InMemoryLocalStore(),
            connectivity=ConnectivityMonitor(online=True),
            max_retries=0,
        )
        reconciler.import_pending(
            mutation.model_copy(update={"user_id": user_id}) for mutation in request.mutations
        )
        report = reconciler.sync_with_server()
        logger.info(
            f"Batch sync for user {user_id}: {len(request.mutations)} mutations, "
            f"{len(report.errors)} errors"
        )
        return LocationSyncResponse(
            report=report, locations=self.gateway.list_locations(user_id)
        )
