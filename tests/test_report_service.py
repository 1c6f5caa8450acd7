import pytest

from trashdrop.core.exceptions import AuthorizationError, BusinessLogicError, NotFoundError
from trashdrop.schemas.location import Coordinates
from trashdrop.schemas.report import DumpingReportCreate
from trashdrop.services.report_service import ReportService


@pytest.fixture
def report_service(db_session):
    return ReportService(db_session)


def file_report(service, reporter_id, **overrides):
    body = {
        "location": "Behind Kaneshie market",
        "coordinates": Coordinates(latitude=5.57, longitude=-0.23),
        "trash_type": "Construction",
    }
    body.update(overrides)
    return service.create_report(reporter_id, DumpingReportCreate(**body))


class TestCreateReport:
    """불법 투기 신고 접수 테스트"""

    @pytest.mark.parametrize("size,payment", [("small", 5), ("medium", 10), ("large", 20)])
    def test_payment_follows_size(self, report_service, user, size, payment):
        report = file_report(report_service, user.id, size=size)

        assert report.payment == payment
        assert report.status == "pending"
        assert report.trash_type == "construction"

    def test_list_only_mine(self, report_service, user):
        file_report(report_service, user.id)
        file_report(report_service, "user-2")

        mine = report_service.list_reports(user.id)
        assert mine.total_count == 1
        assert mine.reports[0].reporter_id == user.id


class TestViewReport:
    """신고 조회 권한 테스트"""

    def test_anonymous_reporter_hidden_from_staff(self, report_service, user, collector):
        report = file_report(report_service, user.id, is_anonymous=True)

        assert report_service.get_report(report.id, user).reporter_id == user.id
        assert report_service.get_report(report.id, collector).reporter_id is None

    def test_named_reporter_visible_to_staff(self, report_service, user, collector):
        report = file_report(report_service, user.id)

        assert report_service.get_report(report.id, collector).reporter_id == user.id

    def test_other_users_cannot_view(self, report_service, user):
        report = file_report(report_service, "user-2")

        with pytest.raises(NotFoundError):
            report_service.get_report(report.id, user)


class TestReportStatus:
    """신고 처리 상태 테스트"""

    def test_collector_cleans_up(self, report_service, user, collector):
        report = file_report(report_service, user.id)

        in_progress = report_service.update_status(report.id, "in_progress", collector)
        assert in_progress.collector_id == collector.id
        assert in_progress.completed_at is None

        cleaned = report_service.update_status(report.id, "cleaned", collector)
        assert cleaned.status == "cleaned"
        assert cleaned.completed_at is not None

    def test_critical_then_rejected(self, report_service, user, admin):
        report = file_report(report_service, user.id)

        report_service.update_status(report.id, "critical", admin)
        rejected = report_service.update_status(report.id, "rejected", admin)

        assert rejected.status == "rejected"

    def test_reporter_cannot_change_status(self, report_service, user):
        report = file_report(report_service, user.id)

        with pytest.raises(AuthorizationError):
            report_service.update_status(report.id, "cleaned", user)

    def test_cannot_skip_to_cleaned(self, report_service, user, collector):
        report = file_report(report_service, user.id)

        with pytest.raises(BusinessLogicError) as exc_info:
            report_service.update_status(report.id, "cleaned", collector)
        assert exc_info.value.error_code == "REPORT_001"
        assert report_service.get_report(report.id, user).status == "pending"
