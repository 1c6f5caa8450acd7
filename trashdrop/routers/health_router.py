import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trashdrop.config import settings
from trashdrop.database.session import get_db
from trashdrop.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """Health check endpoint. Reports degraded when the database is unreachable."""

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {str(e)}")
        return HealthCheckResponse(
            status="degraded",
            environment=settings.ENVIRONMENT,
            database="unavailable",
            error=str(e),
        )
    return HealthCheckResponse(environment=settings.ENVIRONMENT, database="ok")
