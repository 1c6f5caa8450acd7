from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from trashdrop.models.report import DumpingReport as DumpingReportModel, ReportStatusEnum
from trashdrop.repositories.base import BaseRepository
from trashdrop.schemas.report import DumpingReportResponse
from trashdrop.utils.date_utils import format_timestamp


def _value(member) -> str:
    return member.value if hasattr(member, "value") else str(member)


class ReportRepository(BaseRepository[DumpingReportModel, DumpingReportResponse]):
    """불법 투기 신고 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(DumpingReportModel, DumpingReportResponse, db)

    def _to_schema(self, model_instance: DumpingReportModel) -> Optional[DumpingReportResponse]:
        if model_instance is None:
            return None

        return DumpingReportResponse(
            id=model_instance.id,
            reporter_id=model_instance.reporter_id,
            location=model_instance.location,
            latitude=model_instance.latitude,
            longitude=model_instance.longitude,
            trash_type=model_instance.trash_type,
            size=_value(model_instance.size),
            priority=_value(model_instance.priority),
            description=model_instance.description,
            photos=list(model_instance.photos or []),
            payment=model_instance.payment,
            is_anonymous=model_instance.is_anonymous,
            status=_value(model_instance.status),
            collector_id=model_instance.collector_id,
            completed_at=format_timestamp(model_instance.completed_at),
            created_at=format_timestamp(model_instance.created_at) or "",
            updated_at=format_timestamp(model_instance.updated_at),
        )

    def create_report(self, commit: bool = True, **kwargs) -> DumpingReportResponse:
        return self.create(commit=commit, status=ReportStatusEnum.PENDING, **kwargs)

    def list_for_reporter(self, reporter_id: str) -> List[DumpingReportResponse]:
        """최신순"""
        instances = (
            self.db.query(self.model_class)
            .filter(self.model_class.reporter_id == reporter_id)
            .order_by(desc(self.model_class.created_at))
            .all()
        )
        return [self._to_schema(instance) for instance in instances]
