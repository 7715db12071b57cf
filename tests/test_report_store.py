from jobhub.schemas.notifications import NotificationType
from jobhub.schemas.reports import ReportCreate, ReportStatus, ReportType, ReportUpdate
from jobhub.services.results import ErrorCode


def _of_type(hub, notification_type):
    return [n for n in hub.notifications.notifications if n.type == notification_type]


def test_add_report(hub):
    report = hub.reports.add_report(
        ReportCreate(title="Breaker smells burnt", reporter_id="user-emp-e1", type=ReportType.incident, related_job_id="job-001")
    ).unwrap()
    assert hub.reports.reports[0].id == report.id
    assert report.reporter.name == "Somkuan Electric"
    assert report.status == ReportStatus.open
    assert report.created_at is not None
    assert len(_of_type(hub, NotificationType.report_submitted)) == 1


def test_add_report_invalid_references(hub):
    count = len(hub.reports.reports)
    assert hub.reports.add_report(ReportCreate(title="x", reporter_id="ghost")).error.code == ErrorCode.INVALID_REFERENCE
    assert hub.reports.add_report(
        ReportCreate(title="x", reporter_id="user-emp-e1", related_job_id="job-999")
    ).error.code == ErrorCode.INVALID_REFERENCE
    assert hub.reports.add_report(
        ReportCreate(title="x", reporter_id="user-emp-e1", related_inventory_id="inv-999")
    ).error.code == ErrorCode.INVALID_REFERENCE
    assert len(hub.reports.reports) == count


def test_update_report_assign_and_resolve(hub):
    report = hub.reports.update_report("report-001", ReportUpdate(assignee_id="user-lead-1")).unwrap()
    assert report.assignee.id == "user-lead-1"
    assert report.updated_at is not None
    assigned = _of_type(hub, NotificationType.report_assigned)
    assert [n.recipient_id for n in assigned] == ["user-lead-1"]

    hub.reports.update_report("report-001", ReportUpdate(status=ReportStatus.resolved))
    resolved = _of_type(hub, NotificationType.report_resolved)
    assert [n.recipient_id for n in resolved] == ["user-emp-e1"]

    # saving it as resolved again does not notify twice
    hub.reports.update_report("report-001", ReportUpdate(status=ReportStatus.resolved, tags=["done"]))
    assert len(_of_type(hub, NotificationType.report_resolved)) == 1
    assert hub.reports.get_report_by_id("report-001").tags == ["done"]


def test_update_report_missing(hub):
    assert hub.reports.update_report("nope", ReportUpdate(title="x")).error.code == ErrorCode.NOT_FOUND


def test_list_reorder_delete_clear(hub):
    assert [r.id for r in hub.reports.list_reports(status=ReportStatus.open)] == ["report-001"]

    hub.reports.reorder_reports(["report-003"])
    assert [r.id for r in hub.reports.reports] == ["report-003", "report-001", "report-002"]

    assert hub.reports.delete_report("report-003").value.id == "report-003"
    assert hub.reports.delete_report("report-003").value is None

    hub.reports.clear_all()
    assert hub.reports.reports == []
