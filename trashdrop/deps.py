from fastapi import Depends, Request
from sqlalchemy.orm import Session

from trashdrop.config import Settings
from trashdrop.core.tiers import TierTable
from trashdrop.database.session import get_db

# Services
from trashdrop.services.point_service import PointService
from trashdrop.services.reward_service import RewardService
from trashdrop.services.location_service import LocationService
from trashdrop.services.pickup_service import PickupService
from trashdrop.services.bag_order_service import BagOrderService
from trashdrop.services.report_service import ReportService


def get_settings(request: Request) -> Settings:
    return request.app.container.config.config()


def get_tier_table(request: Request) -> TierTable:
    return request.app.container.rewards.tier_table()


def get_point_service(
    db: Session = Depends(get_db), tier_table: TierTable = Depends(get_tier_table)
) -> PointService:
    return PointService(db=db, tier_table=tier_table)


def get_reward_service(
    db: Session = Depends(get_db), tier_table: TierTable = Depends(get_tier_table)
) -> RewardService:
    return RewardService(db=db, point_service=PointService(db=db, tier_table=tier_table))


def get_location_service(db: Session = Depends(get_db)) -> LocationService:
    return LocationService(db=db)


def get_pickup_service(
    db: Session = Depends(get_db),
    tier_table: TierTable = Depends(get_tier_table),
    settings: Settings = Depends(get_settings),
) -> PickupService:
    return PickupService(
        db=db,
        point_service=PointService(db=db, tier_table=tier_table),
        schedule_preview_count=settings.SCHEDULE_PREVIEW_COUNT,
    )


def get_bag_order_service(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> BagOrderService:
    return BagOrderService(db=db, delivery_days=settings.BAG_DELIVERY_DAYS)


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db=db)
