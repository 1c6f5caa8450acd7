from abc import ABC, abstractmethod
from typing import List, Optional

from trashdrop.schemas.location import LocationCreate, LocationRecord, LocationUpdate


class LocationGateway(ABC):
    """
    Server-side location operations as seen by the offline reconciler.

    Implementations raise TransientFailure for anything worth retrying,
    RecordNotFoundError when the location is absent or not owned by the user,
    and ValidationError when the server rejects the input.
    """

    @abstractmethod
    def list_locations(self, user_id: str) -> List[LocationRecord]:
        ...

    @abstractmethod
    def get_location(self, location_id: str, user_id: str) -> Optional[LocationRecord]:
        """None when the location does not exist (or is not owned by the user)"""

    @abstractmethod
    def create_location(self, user_id: str, data: LocationCreate) -> LocationRecord:
        ...

    @abstractmethod
    def update_location(
        self, location_id: str, user_id: str, changes: LocationUpdate
    ) -> LocationRecord:
        ...

    @abstractmethod
    def delete_location(self, location_id: str, user_id: str) -> None:
        ...

    @abstractmethod
    def set_default(self, location_id: str, user_id: str) -> LocationRecord:
        """Unset every other default of the user and set this one, atomically"""
