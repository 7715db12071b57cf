import uuid
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..schemas.audit import AuditAction, AuditEntityType
from ..schemas.jobs import (
    Attachment,
    Job,
    JobCreate,
    JobStatus,
    JobUpdate,
    Task,
    TaskInput,
    UsedInventory,
    WorkLog,
)
from ..schemas.users import User
from ..seed_data import seed_jobs
from ..services.audit import compute_diff
from ..services.events import UserProfileChanged
from ..services.job_status import can_transition, status_label
from ..services.results import ErrorCode, StoreResult
from .base import PersistedStore, dump_models, find_index


logger = structlog.get_logger(__name__)

# plain fields copied from an update payload as-is
DIRECT_FIELDS = (
    "description",
    "department",
    "priority",
    "attachments",
    "used_inventory",
    "customer",
    "signature",
    "start_date",
    "end_date",
    "location",
)
AUDITED_FIELDS = ("title", "status", "department", "priority", "assigned_employee_ids", "lead_technician_id", "start_date", "end_date")


def _build_tasks(items: Iterable[TaskInput]) -> List[Task]:
    return [
        Task(
            id=t.id or str(uuid.uuid4()),
            description=t.description,
            details=t.details,
            is_completed=bool(t.is_completed),
            order=t.order if t.order is not None else i,
        )
        for i, t in enumerate(items)
    ]


def _audit_view(job: Job) -> Dict[str, Any]:
    data = job.model_dump(mode="json", include={"title", "status", "department", "priority", "start_date", "end_date"})
    data["assigned_employee_ids"] = [u.id for u in job.assigned_employees]
    data["lead_technician_id"] = job.lead_technician.id if job.lead_technician else None
    return data


def _crew_ids(job: Job) -> List[str]:
    """Assignees then the lead technician, without repeats."""
    ids = [u.id for u in job.assigned_employees]
    if job.lead_technician:
        ids.append(job.lead_technician.id)
    return list(dict.fromkeys(ids))


def merge_used_inventory(existing: List[UsedInventory], lines: Iterable[UsedInventory]) -> List[UsedInventory]:
    totals: Dict[str, int] = {}
    for line in list(existing) + list(lines):
        totals[line.id] = totals.get(line.id, 0) + line.qty
    return [UsedInventory(id=item_id, qty=qty) for item_id, qty in totals.items()]


class JobStore(PersistedStore):
    name = "job-management-storage"
    version = 2

    def __init__(self, storage, users, audit=None, notifier=None, **kwargs):
        super().__init__(storage, **kwargs)
        self.users = users
        self.audit = audit
        self.notifier = notifier
        self.jobs: List[Job] = []

    # -- persistence ---------------------------------------------------------------

    def dump_state(self) -> Dict[str, Any]:
        return {"jobs": dump_models(self.jobs)}

    def load_state(self, state: Dict[str, Any]) -> None:
        self.jobs = [Job.model_validate(x) for x in state.get("jobs") or []]

    def is_empty(self) -> bool:
        return not self.jobs

    def seed(self) -> None:
        self.jobs = seed_jobs(self.users.users)

    def migrate(self, state: Dict[str, Any], version: int) -> Dict[str, Any]:
        if version < 2:
            # session data used to be persisted alongside jobs
            for key in ("is_authenticated", "isAuthenticated", "current_user", "currentUser", "users", "job_users", "jobUsers"):
                state.pop(key, None)
            migrated = []
            for job in state.get("jobs") or []:
                job = dict(job)
                departments = job.pop("departments", None)
                if not job.get("department") and isinstance(departments, list) and departments:
                    job["department"] = departments[0]
                for key in ("tasks", "attachments", "used_inventory", "work_logs", "assigned_employees"):
                    if job.get(key) is None:
                        job[key] = []
                migrated.append(job)
            state["jobs"] = migrated
        return state

    # -- helpers ------------------------------------------------------------------------

    def _actor(self) -> Optional[User]:
        return self.users.current_user

    def _resolve_assignees(self, ids: Optional[Iterable[str]]):
        ids = list(ids or [])
        resolved = self.users.get_users_by_ids(ids)
        missing = sorted(set(ids) - {u.id for u in resolved})
        if missing:
            logger.warning("job_assignees_not_found", user_ids=missing)
        return [u.snapshot() for u in resolved]

    def _resolve_lead(self, lead_id: Optional[str]):
        if not lead_id:
            return None
        lead = self.users.get_user_by_id(lead_id)
        if lead is None:
            logger.warning("job_lead_not_found", user_id=lead_id)
            return None
        return lead.snapshot()

    def _work_log(self, status: JobStatus, note: Optional[str], actor: Optional[User] = None) -> WorkLog:
        actor = actor or self._actor()
        return WorkLog(
            id=str(uuid.uuid4()),
            status=status,
            note=note or f"Status changed to {status_label(status)}",
            updated_by=actor.creator_snapshot() if actor else None,
        )

    def _replace(self, idx: int, job: Job) -> Job:
        self.jobs[idx] = job
        self.persist()
        return job

    def _not_found(self, job_id: str, op: str) -> StoreResult:
        logger.warning("job_not_found", job_id=job_id, op=op)
        return StoreResult.failure(ErrorCode.NOT_FOUND, f"Job {job_id} not found")

    # -- mutations ----------------------------------------------------------------------------

    def create_job(self, data: JobCreate) -> StoreResult[Job]:
        creator = self.users.get_user_by_id(data.creator_id)
        if creator is None:
            logger.error("create_job_creator_not_found", creator_id=data.creator_id)
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Creator {data.creator_id} not found")

        job = Job(
            id=str(uuid.uuid4()),
            title=data.title,
            description=data.description,
            status=JobStatus.pending,
            department=data.department,
            priority=data.priority,
            creator=creator.creator_snapshot(),
            assigned_employees=self._resolve_assignees(data.assigned_employee_ids),
            lead_technician=self._resolve_lead(data.lead_technician_id),
            tasks=_build_tasks(data.tasks),
            used_inventory=merge_used_inventory([], data.used_inventory),
            customer=data.customer,
            start_date=data.start_date,
            end_date=data.end_date,
            location=data.location,
        )
        self.jobs.insert(0, job)
        self.persist()
        logger.info("job_created", job_id=job.id, creator_id=creator.id, assignees=len(job.assigned_employees))

        if self.audit:
            self.audit.record(AuditAction.create, AuditEntityType.job, job.id, job.title, details=f"Created job {job.title}")
        if self.notifier:
            self.notifier.job_created(job.title, creator.name, job.id, job.department)
            for assignee_id in _crew_ids(job):
                self.notifier.job_assigned(job.title, creator.name, job.id, assignee_id)
        return StoreResult.success(job)

    def update_job(self, job_id: str, patch: JobUpdate) -> StoreResult[Job]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "update")

        current = self.jobs[idx]
        fields = patch.model_fields_set
        update: Dict[str, Any] = {}

        status_changed = False
        if "status" in fields and patch.status is not None and patch.status != current.status:
            if not can_transition(current.status, patch.status):
                logger.warning("job_illegal_transition", job_id=job_id, current=current.status.value, target=patch.status.value)
                return StoreResult.failure(
                    ErrorCode.ILLEGAL_TRANSITION,
                    f"Cannot move job from {current.status.value} to {patch.status.value}",
                )
            update["status"] = patch.status
            update["work_logs"] = current.work_logs + [self._work_log(patch.status, None)]
            status_changed = True

        if "creator_id" in fields:
            new_creator = self.users.get_user_by_id(patch.creator_id)
            if new_creator is not None:
                update["creator"] = new_creator.creator_snapshot()
            else:
                logger.warning("job_creator_not_found", job_id=job_id, creator_id=patch.creator_id)
        if "assigned_employee_ids" in fields:
            update["assigned_employees"] = self._resolve_assignees(patch.assigned_employee_ids)
        if "lead_technician_id" in fields:
            update["lead_technician"] = self._resolve_lead(patch.lead_technician_id)
        if "tasks" in fields:
            update["tasks"] = sorted(_build_tasks(patch.tasks or []), key=lambda t: t.order)
        if "title" in fields and patch.title:
            update["title"] = patch.title.strip()
        for name in DIRECT_FIELDS:
            if name in fields:
                value = getattr(patch, name)
                if name in ("attachments", "used_inventory") and value is None:
                    value = []
                update[name] = value

        updated = self._replace(idx, current.model_copy(update=update))
        logger.info("job_updated", job_id=job_id, fields=sorted(fields))
        self._after_update(current, updated, status_changed)
        return StoreResult.success(updated)

    def transition_job(
        self, job_id: str, status: JobStatus, actor_id: Optional[str] = None, note: Optional[str] = None
    ) -> StoreResult[Job]:
        """Guarded status change with a work log entry. The actor defaults to the session user."""
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "transition")
        current = self.jobs[idx]
        status = JobStatus(status)
        actor = self.users.get_user_by_id(actor_id) if actor_id else None
        if actor_id and actor is None:
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"User {actor_id} not found")
        if not can_transition(current.status, status):
            logger.warning("job_illegal_transition", job_id=job_id, current=current.status.value, target=status.value)
            return StoreResult.failure(
                ErrorCode.ILLEGAL_TRANSITION,
                f"Cannot move job from {current.status.value} to {status.value}",
            )
        if status == current.status:
            return StoreResult.success(current)

        updated = self._replace(
            idx,
            current.model_copy(update={"status": status, "work_logs": current.work_logs + [self._work_log(status, note, actor)]}),
        )
        logger.info("job_transitioned", job_id=job_id, from_status=current.status.value, to_status=status.value)
        self._after_update(current, updated, status_changed=True)
        return StoreResult.success(updated)

    def _after_update(self, before: Job, after: Job, status_changed: bool) -> None:
        actor = self._actor()
        actor_name = actor.name if actor else "System"
        if self.audit:
            action = AuditAction.update
            if status_changed and after.status == JobStatus.completed:
                action = AuditAction.approve
            elif status_changed and after.status == JobStatus.rejected:
                action = AuditAction.reject
            self.audit.record(
                action,
                AuditEntityType.job,
                after.id,
                after.title,
                details=f"Updated job {after.title}",
                changes=compute_diff(_audit_view(before), _audit_view(after), fields=list(AUDITED_FIELDS)),
            )
        if not self.notifier:
            return

        previous = set(_crew_ids(before))
        for assignee_id in _crew_ids(after):
            if assignee_id not in previous:
                self.notifier.job_assigned(after.title, actor_name, after.id, assignee_id)

        if not status_changed:
            self.notifier.job_updated(after.title, actor_name, after.id, after.department)
            return
        if after.status == JobStatus.completed:
            self.notifier.job_completed(after.title, actor_name, after.id, after.department)
        for recipient_id in dict.fromkeys(_crew_ids(after) + [after.creator.id]):
            self.notifier.job_status_changed(after.title, after.status.value, after.id, recipient_id)

    def delete_job(self, job_id: str) -> StoreResult[Optional[Job]]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return StoreResult.success(None)
        removed = self.jobs.pop(idx)
        self.persist()
        logger.info("job_deleted", job_id=job_id)
        if self.audit:
            self.audit.record(AuditAction.delete, AuditEntityType.job, removed.id, removed.title, details=f"Deleted job {removed.title}")
        return StoreResult.success(removed)

    def set_task_completion(self, job_id: str, task_id: str, is_completed: bool) -> StoreResult[Job]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "set_task_completion")
        job = self.jobs[idx]
        if find_index(job.tasks, task_id) is None:
            logger.warning("task_not_found", job_id=job_id, task_id=task_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Task {task_id} not found")
        tasks = [t.model_copy(update={"is_completed": is_completed}) if t.id == task_id else t for t in job.tasks]
        return StoreResult.success(self._replace(idx, job.model_copy(update={"tasks": tasks})))

    def add_attachment(self, job_id: str, attachment: Attachment) -> StoreResult[Job]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "add_attachment")
        job = self.jobs[idx]
        return StoreResult.success(self._replace(idx, job.model_copy(update={"attachments": job.attachments + [attachment]})))

    def remove_attachment(self, job_id: str, attachment_id: str) -> StoreResult[Job]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "remove_attachment")
        job = self.jobs[idx]
        if find_index(job.attachments, attachment_id) is None:
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Attachment {attachment_id} not found")
        kept = [a for a in job.attachments if a.id != attachment_id]
        return StoreResult.success(self._replace(idx, job.model_copy(update={"attachments": kept})))

    def set_signature(self, job_id: str, data_url: Optional[str]) -> StoreResult[Job]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "set_signature")
        return StoreResult.success(self._replace(idx, self.jobs[idx].model_copy(update={"signature": data_url})))

    def add_used_inventory(self, job_id: str, lines: Iterable[UsedInventory]) -> StoreResult[Job]:
        idx = find_index(self.jobs, job_id)
        if idx is None:
            return self._not_found(job_id, "add_used_inventory")
        job = self.jobs[idx]
        merged = merge_used_inventory(job.used_inventory, lines)
        return StoreResult.success(self._replace(idx, job.model_copy(update={"used_inventory": merged})))

    def refresh_user_snapshots(self, event: UserProfileChanged) -> int:
        """Rewrite every snapshot of the changed user. Returns the number of jobs touched."""
        user = event.user
        touched = 0
        for i, job in enumerate(self.jobs):
            update: Dict[str, Any] = {}
            if job.creator.id == user.id:
                update["creator"] = user.creator_snapshot()
            if job.is_assigned(user.id):
                update["assigned_employees"] = [
                    user.snapshot() if u.id == user.id else u for u in job.assigned_employees
                ]
            if job.is_lead(user.id):
                update["lead_technician"] = user.snapshot()
            if update:
                self.jobs[i] = job.model_copy(update=update)
                touched += 1
        if touched:
            self.persist()
            logger.info("job_snapshots_refreshed", user_id=user.id, jobs=touched)
        return touched

    # -- reads ----------------------------------------------------------------------------------

    def get_job_by_id(self, job_id: str) -> Optional[Job]:
        return next((j for j in self.jobs if j.id == job_id), None)

    def list_jobs(self, status: Optional[JobStatus] = None) -> List[Job]:
        if status is None:
            return list(self.jobs)
        return [j for j in self.jobs if j.status == JobStatus(status)]
