import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..schemas.audit import AuditAction, AuditEntityType
from ..schemas.reports import PersonRef, Report, ReportCreate, ReportStatus, ReportUpdate
from ..seed_data import seed_reports
from ..services.audit import compute_diff
from ..services.results import ErrorCode, StoreResult
from .base import PersistedStore, dump_models, find_index, reorder_by_ids


logger = structlog.get_logger(__name__)

AUDITED_FIELDS = ("title", "type", "status", "priority", "assignee")


def _person(user) -> PersonRef:
    return PersonRef(id=user.id, name=user.name, image_url=user.image_url)


class ReportStore(PersistedStore):
    name = "report-storage"
    version = 1

    def __init__(self, storage, users=None, jobs=None, inventory=None, audit=None, notifier=None, **kwargs):
        super().__init__(storage, **kwargs)
        self.users = users
        self.jobs = jobs
        self.inventory = inventory
        self.audit = audit
        self.notifier = notifier
        self.reports: List[Report] = []

    def dump_state(self) -> Dict[str, Any]:
        return {"reports": dump_models(self.reports)}

    def load_state(self, state: Dict[str, Any]) -> None:
        self.reports = [Report.model_validate(x) for x in state.get("reports") or []]

    def is_empty(self) -> bool:
        return not self.reports

    def seed(self) -> None:
        self.reports = seed_reports()

    def _check_related(self, job_id: Optional[str], item_id: Optional[str]) -> Optional[StoreResult]:
        if job_id and self.jobs is not None and self.jobs.get_job_by_id(job_id) is None:
            logger.error("report_related_job_not_found", job_id=job_id)
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Job {job_id} not found")
        if item_id and self.inventory is not None and self.inventory.get_item_by_id(item_id) is None:
            logger.error("report_related_item_not_found", item_id=item_id)
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Item {item_id} not found")
        return None

    def add_report(self, data: ReportCreate) -> StoreResult[Report]:
        reporter = self.users.get_user_by_id(data.reporter_id)
        if reporter is None:
            logger.error("report_reporter_not_found", reporter_id=data.reporter_id)
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"User {data.reporter_id} not found")
        failure = self._check_related(data.related_job_id, data.related_inventory_id)
        if failure is not None:
            return failure

        assignee = self.users.get_user_by_id(data.assignee_id) if data.assignee_id else None
        report = Report(
            id=str(uuid.uuid4()),
            reporter=_person(reporter),
            assignee=_person(assignee) if assignee else None,
            **data.model_dump(exclude={"reporter_id", "assignee_id"}),
        )
        self.reports.insert(0, report)
        self.persist()
        logger.info("report_added", report_id=report.id, type=report.type.value)

        if self.audit:
            self.audit.record(AuditAction.create, AuditEntityType.report, report.id, report.title, details=f"Submitted report {report.title}")
        if self.notifier:
            self.notifier.report_submitted(report.title, reporter.name, report.id)
            if assignee:
                self.notifier.report_assigned(report.title, assignee.name, report.id, assignee.id)
        return StoreResult.success(report)

    def update_report(self, report_id: str, patch: ReportUpdate) -> StoreResult[Report]:
        idx = find_index(self.reports, report_id)
        if idx is None:
            logger.warning("report_not_found", report_id=report_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Report {report_id} not found")

        before = self.reports[idx]
        fields = patch.model_fields_set
        failure = self._check_related(
            patch.related_job_id if "related_job_id" in fields else None,
            patch.related_inventory_id if "related_inventory_id" in fields else None,
        )
        if failure is not None:
            return failure

        update: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
        assignee = None
        if "assignee_id" in fields:
            if patch.assignee_id:
                assignee = self.users.get_user_by_id(patch.assignee_id)
                if assignee is None:
                    logger.error("report_assignee_not_found", assignee_id=patch.assignee_id)
                    return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"User {patch.assignee_id} not found")
                update["assignee"] = _person(assignee)
            else:
                update["assignee"] = None
        for name in ("title", "type", "status", "tags", "attachments"):
            if name in fields and getattr(patch, name) is not None:
                update[name] = getattr(patch, name)
        for name in ("description", "priority", "related_job_id", "related_inventory_id"):
            if name in fields:
                update[name] = getattr(patch, name)

        updated = before.model_copy(update=update)
        self.reports[idx] = updated
        self.persist()
        logger.info("report_updated", report_id=report_id, fields=sorted(fields))

        if self.audit:
            self.audit.record(
                AuditAction.update,
                AuditEntityType.report,
                updated.id,
                updated.title,
                details=f"Updated report {updated.title}",
                changes=compute_diff(
                    before.model_dump(mode="json", include=set(AUDITED_FIELDS)),
                    updated.model_dump(mode="json", include=set(AUDITED_FIELDS)),
                ),
            )
        if self.notifier:
            previous_assignee = before.assignee.id if before.assignee else None
            if assignee is not None and assignee.id != previous_assignee:
                self.notifier.report_assigned(updated.title, assignee.name, updated.id, assignee.id)
            if updated.status == ReportStatus.resolved and before.status != ReportStatus.resolved:
                actor = self.users.current_user
                resolver = actor.name if actor else (updated.assignee.name if updated.assignee else "System")
                self.notifier.report_resolved(updated.title, resolver, updated.id, updated.reporter.id)
        return StoreResult.success(updated)

    def delete_report(self, report_id: str) -> StoreResult[Optional[Report]]:
        idx = find_index(self.reports, report_id)
        if idx is None:
            return StoreResult.success(None)
        removed = self.reports.pop(idx)
        self.persist()
        logger.info("report_deleted", report_id=report_id)
        if self.audit:
            self.audit.record(AuditAction.delete, AuditEntityType.report, removed.id, removed.title, details=f"Deleted report {removed.title}")
        return StoreResult.success(removed)

    def reorder_reports(self, report_ids: Iterable[str]) -> None:
        self.reports = reorder_by_ids(self.reports, report_ids)
        self.persist()

    def clear_all(self) -> None:
        self.reports = []
        self.persist()

    def get_report_by_id(self, report_id: str) -> Optional[Report]:
        return next((r for r in self.reports if r.id == report_id), None)

    def list_reports(self, status: Optional[ReportStatus] = None) -> List[Report]:
        if status is None:
            return list(self.reports)
        return [r for r in self.reports if r.status == ReportStatus(status)]
