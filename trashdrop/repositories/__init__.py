# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .points_repository import PointsRepository
from .rewards_repository import RewardsRepository
from .location_repository import LocationRepository
from .pickup_repository import PickupRepository
from .bag_order_repository import BagOrderRepository
from .report_repository import ReportRepository

__all__ = [
    "BaseRepository",
    "PointsRepository",
    "RewardsRepository",
    "LocationRepository",
    "PickupRepository",
    "BagOrderRepository",
    "ReportRepository",
]
