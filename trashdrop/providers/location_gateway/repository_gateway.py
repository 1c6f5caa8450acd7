import logging
from functools import wraps
from typing import List, Optional

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from trashdrop.core.exceptions import RecordNotFoundError, TransientFailure
from trashdrop.providers.location_gateway.base import LocationGateway
from trashdrop.repositories.location_repository import LocationRepository
from trashdrop.schemas.location import LocationCreate, LocationRecord, LocationUpdate

logger = logging.getLogger(__name__)


def _transient_on_disconnect(func):
    """Database connectivity errors -> TransientFailure"""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except OperationalError as e:
            logger.warning(f"Location store unavailable in {func.__name__}: {str(e)}")
            raise TransientFailure("Location store unavailable", details={"operation": func.__name__})
        except DBAPIError as e:
            if not e.connection_invalidated:
                raise
            logger.warning(f"Location store connection lost in {func.__name__}: {str(e)}")
            raise TransientFailure("Location store unavailable", details={"operation": func.__name__})

    return wrapper


class RepositoryLocationGateway(LocationGateway):
    """In-process gateway over the location repository (one SQLAlchemy session)"""

    def __init__(self, db: Session):
        self.db = db
        self.location_repo = LocationRepository(db)

    @staticmethod
    def _not_found(location_id: str) -> RecordNotFoundError:
        return RecordNotFoundError(
            f"Location not found: {location_id}", details={"location_id": location_id}
        )

    @_transient_on_disconnect
    def list_locations(self, user_id: str) -> List[LocationRecord]:
        return self.location_repo.list_for_user(user_id)

    @_transient_on_disconnect
    def get_location(self, location_id: str, user_id: str) -> Optional[LocationRecord]:
        return self.location_repo.get_for_user(location_id, user_id)

    @_transient_on_disconnect
    def create_location(self, user_id: str, data: LocationCreate) -> LocationRecord:
        return self.location_repo.create_location(user_id, data)

    @_transient_on_disconnect
    def update_location(
        self, location_id: str, user_id: str, changes: LocationUpdate
    ) -> LocationRecord:
        record = self.location_repo.update_location(
            location_id,
            user_id,
            changes.model_dump(exclude_unset=True, exclude={"updated_at"}),
            updated_at=changes.updated_at,
        )
        if record is None:
            raise self._not_found(location_id)
        return record

    @_transient_on_disconnect
    def delete_location(self, location_id: str, user_id: str) -> None:
        if not self.location_repo.delete_location(location_id, user_id):
            raise self._not_found(location_id)

    @_transient_on_disconnect
    def set_default(self, location_id: str, user_id: str) -> LocationRecord:
        record = self.location_repo.set_default(location_id, user_id)
        if record is None:
            raise self._not_found(location_id)
        return record
