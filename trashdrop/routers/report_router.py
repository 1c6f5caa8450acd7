"""
불법 투기 신고 API 라우터

- POST /reports: 신고 접수
- GET /reports: 내 신고 목록
- GET /reports/{report_id}: 신고 상세 (신고자, 수거원/관리자)
- PATCH /reports/{report_id}/status: 처리 상태 변경 (수거원/관리자)
"""

from fastapi import APIRouter, Depends, Path, status

from trashdrop.core.security import get_current_user
from trashdrop.deps import get_report_service
from trashdrop.schemas.report import (
    DumpingReportCreate,
    DumpingReportListResponse,
    DumpingReportResponse,
    ReportStatusUpdate,
)
from trashdrop.schemas.user import AuthenticatedUser
from trashdrop.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=DumpingReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    request: DumpingReportCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    report_service: ReportService = Depends(get_report_service),
) -> DumpingReportResponse:
    """
    불법 투기 신고

    payment 는 규모에 따라 정해집니다 (small 5, medium 10, large 20).

    HTTP Status:
        201: 접수됨
        422: 입력 검증 실패
    """
    return report_service.create_report(current_user.id, request)


@router.get("", response_model=DumpingReportListResponse)
def list_reports(
    current_user: AuthenticatedUser = Depends(get_current_user),
    report_service: ReportService = Depends(get_report_service),
) -> DumpingReportListResponse:
    return report_service.list_reports(current_user.id)


@router.get("/{report_id}", response_model=DumpingReportResponse)
def get_report(
    report_id: str = Path(..., description="신고 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    report_service: ReportService = Depends(get_report_service),
) -> DumpingReportResponse:
    return report_service.get_report(report_id, current_user)


@router.patch("/{report_id}/status", response_model=DumpingReportResponse)
def update_report_status(
    request: ReportStatusUpdate,
    report_id: str = Path(..., description="신고 ID"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    report_service: ReportService = Depends(get_report_service),
) -> DumpingReportResponse:
    """
    처리 상태 변경

    pending -> in_progress | critical | rejected, critical -> in_progress | rejected,
    in_progress -> cleaned.

    HTTP Status:
        200: 변경됨
        400: 허용되지 않는 상태 변경 (REPORT_001)
        403: 수거원/관리자가 아님
    """
    return report_service.update_status(report_id, request.status, current_user)
