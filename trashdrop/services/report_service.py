import logging
from typing import Dict, Set

from sqlalchemy.orm import Session

from trashdrop.core.exceptions import AuthorizationError, BusinessLogicError, NotFoundError, ValidationError
from trashdrop.models.report import ReportPriorityEnum, ReportSizeEnum, ReportStatusEnum
from trashdrop.repositories.report_repository import ReportRepository
from trashdrop.schemas.report import (
    DumpingReportCreate,
    DumpingReportListResponse,
    DumpingReportResponse,
)
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.utils.date_utils import utcnow

logger = logging.getLogger(__name__)

# 규모별 수거원 보상
PAYMENT_BY_SIZE: Dict[ReportSizeEnum, int] = {
    ReportSizeEnum.SMALL: 5,
    ReportSizeEnum.MEDIUM: 10,
    ReportSizeEnum.LARGE: 20,
}

REPORT_TRANSITIONS: Dict[ReportStatusEnum, Set[ReportStatusEnum]] = {
    ReportStatusEnum.PENDING: {
        ReportStatusEnum.IN_PROGRESS,
        ReportStatusEnum.CRITICAL,
        ReportStatusEnum.REJECTED,
    },
    ReportStatusEnum.CRITICAL: {ReportStatusEnum.IN_PROGRESS, ReportStatusEnum.REJECTED},
    ReportStatusEnum.IN_PROGRESS: {ReportStatusEnum.CLEANED},
    ReportStatusEnum.CLEANED: set(),
    ReportStatusEnum.REJECTED: set(),
}


def _parse_status(status: str) -> ReportStatusEnum:
    try:
        return ReportStatusEnum(status)
    except ValueError:
        raise ValidationError(f"Invalid report status: {status}")


class ReportService:
    """불법 투기 신고 접수와 처리 상태 관리"""

    def __init__(self, db: Session):
        self.db = db
        self.report_repo = ReportRepository(db)

    @staticmethod
    def _for_viewer(report: DumpingReportResponse, viewer_id: str) -> DumpingReportResponse:
        if report.is_anonymous and report.reporter_id != viewer_id:
            return report.model_copy(update={"reporter_id": None})
        return report

    def create_report(self, reporter_id: str, request: DumpingReportCreate) -> DumpingReportResponse:
        size = ReportSizeEnum(request.size)
        report = self.report_repo.create_report(
            reporter_id=reporter_id,
            location=request.location,
            latitude=request.coordinates.latitude,
            longitude=request.coordinates.longitude,
            trash_type=request.trash_type.strip().lower(),
            size=size,
            priority=ReportPriorityEnum(request.priority),
            description=request.description,
            photos=list(request.photos),
            payment=PAYMENT_BY_SIZE[size],
            is_anonymous=request.is_anonymous,
        )
        logger.info(f"Dumping report {report.id} ({size.value}) filed")
        return report

    def list_reports(self, reporter_id: str) -> DumpingReportListResponse:
        reports = self.report_repo.list_for_reporter(reporter_id)
        return DumpingReportListResponse(reports=reports, total_count=len(reports))

    def get_report(self, report_id: str, viewer: AuthenticatedUser) -> DumpingReportResponse:
        """신고자 본인 또는 수거원/관리자만 조회, 익명 신고의 신고자는 본인에게만 표시"""
        report = self.report_repo.get_by_id(report_id)
        if report is None or (report.reporter_id != viewer.id and not viewer.is_collector):
            raise NotFoundError(f"Dumping report not found: {report_id}")
        return self._for_viewer(report, viewer.id)

    def update_status(
        self, report_id: str, new_status: str, actor: AuthenticatedUser
    ) -> DumpingReportResponse:
        """
        pending -> in_progress | critical | rejected
        critical -> in_progress | rejected
        in_progress -> cleaned

        수거원/관리자만 변경할 수 있습니다. in_progress 로 바꾼 사람이 담당 수거원이 되고,
        cleaned 시점이 completed_at 으로 기록됩니다.
        """
        target = _parse_status(new_status)
        if not actor.is_collector:
            raise AuthorizationError("Only collectors can update dumping reports")

        report = self.get_report(report_id, actor)
        current = ReportStatusEnum(report.status)
        if target not in REPORT_TRANSITIONS[current]:
            raise BusinessLogicError(
                error_code="REPORT_001",
                message=f"Cannot change report status from {current.value} to {target.value}",
                details={"from": current.value, "to": target.value},
            )

        changes = {"status": target}
        if target == ReportStatusEnum.IN_PROGRESS:
            changes["collector_id"] = actor.id
        if target == ReportStatusEnum.CLEANED:
            changes["completed_at"] = utcnow()

        updated = self.report_repo.update(report_id, **changes)
        logger.info(f"Dumping report {report_id}: {current.value} -> {target.value}")
        return self._for_viewer(updated, actor.id)
