"""
Fixed demo data loaded into empty stores on first hydrate.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from .schemas.inventory import InventoryItem, InventoryType
from .schemas.jobs import Job, JobLocation, JobPriority, JobStatus, Task, WorkLog
from .schemas.reports import PersonRef, Report, ReportStatus, ReportType
from .schemas.users import Role, User


SEED_PASSWORD = "password123"
_EPOCH = datetime(2025, 11, 20, 8, 0, tzinfo=timezone.utc)


def _user(uid: str, name: str, role: Role, email: str, department=None, image_url=None) -> User:
    return User(
        id=uid,
        name=name,
        role=role,
        email=email,
        password=SEED_PASSWORD,
        department=department,
        image_url=image_url,
        created_at=_EPOCH,
    )


def seed_users() -> List[User]:
    return [
        _user("user-admin-1", "Somchai Admin", Role.admin, "somchai.admin@company.com",
              image_url="https://i.pravatar.cc/150?u=admin1"),
        _user("user-manager-1", "Wipa Manager", Role.manager, "wipa.manager@company.com",
              department="Electrical", image_url="https://i.pravatar.cc/150?u=mgr1"),
        _user("user-lead-1", "Somsak Lead", Role.lead_technician, "somsak.lead@company.com",
              department="Electrical"),
        _user("user-emp-e1", "Somkuan Electric", Role.employee, "emp1@company.com", department="Electrical"),
        _user("user-emp-e2", "Pirai Electric", Role.employee, "emp2@company.com", department="Electrical"),
        _user("user-emp-p1", "Malee Plumbing", Role.employee, "emp3@company.com", department="Plumbing"),
        _user("user-emp-p2", "Prayut Plumbing", Role.employee, "emp4@company.com", department="Plumbing"),
    ]


def seed_jobs(users: List[User]) -> List[Job]:
    by_id: Dict[str, User] = {u.id: u for u in users}

    def snap(uid):
        return by_id[uid].snapshot() if uid in by_id else None

    def creator(uid):
        return by_id[uid].creator_snapshot()

    if "user-admin-1" not in by_id or "user-manager-1" not in by_id:
        return []

    return [
        Job(
            id="job-001",
            title="Replace breaker panel, building A",
            description="Main panel trips under load; replace and re-label circuits.",
            status=JobStatus.in_progress,
            department="Electrical",
            priority=JobPriority.high,
            creator=creator("user-manager-1"),
            assigned_employees=[s for s in (snap("user-emp-e1"), snap("user-emp-e2")) if s],
            lead_technician=snap("user-lead-1"),
            tasks=[
                Task(id="task-001-1", description="Isolate supply", is_completed=True, order=0),
                Task(id="task-001-2", description="Swap panel", order=1),
                Task(id="task-001-3", description="Test and label circuits", order=2),
            ],
            work_logs=[
                WorkLog(id="log-001-1", date=_EPOCH + timedelta(hours=2), status=JobStatus.in_progress,
                        note="Work started", updated_by=creator("user-lead-1") if "user-lead-1" in by_id else None),
            ],
            created_at=_EPOCH,
            start_date=_EPOCH + timedelta(days=1),
            end_date=_EPOCH + timedelta(days=1, hours=6),
            location=JobLocation(lat=13.7563, lng=100.5018, name="Building A"),
        ),
        Job(
            id="job-002",
            title="Fix leaking pipe, kitchen B2",
            description="Water under the sink cabinet.",
            status=JobStatus.pending,
            department="Plumbing",
            priority=JobPriority.medium,
            creator=creator("user-admin-1"),
            assigned_employees=[s for s in (snap("user-emp-p1"),) if s],
            tasks=[Task(id="task-002-1", description="Locate leak", order=0)],
            created_at=_EPOCH + timedelta(hours=1),
            start_date=_EPOCH + timedelta(days=2),
        ),
        Job(
            id="job-003",
            title="Quarterly lighting inspection",
            status=JobStatus.completed,
            department="Electrical",
            priority=JobPriority.low,
            creator=creator("user-admin-1"),
            assigned_employees=[s for s in (snap("user-emp-e2"),) if s],
            created_at=_EPOCH - timedelta(days=10),
            start_date=_EPOCH - timedelta(days=9),
            end_date=_EPOCH - timedelta(days=9, hours=-3),
        ),
    ]


def seed_inventory() -> List[InventoryItem]:
    return [
        InventoryItem(id="inv-1", name="Circuit breaker 32A", quantity=24, location="Storage A",
                      type=InventoryType.device, price=450, require_from="Electrical", reorder_point=5),
        InventoryItem(id="inv-2", name="PVC pipe 1/2 inch", quantity=4, location="Storage B",
                      type=InventoryType.accessory, price=85, require_from="Plumbing", reorder_point=10),
        InventoryItem(id="inv-3", name="Digital multimeter", quantity=3, location="Tool room",
                      type=InventoryType.tool, price=1200, require_from="Electrical", reorder_point=1),
        InventoryItem(id="inv-4", name="Pipe wrench", quantity=0, location="Tool room",
                      type=InventoryType.tool, price=650, require_from="Plumbing", reorder_point=1),
    ]


def seed_reports() -> List[Report]:
    return [
        Report(
            id="report-001",
            title="Login fails on Safari",
            description="Signing in from Safari on macOS errors out; Chrome works.",
            type=ReportType.bug,
            status=ReportStatus.open,
            priority=JobPriority.high,
            tags=["frontend", "safari", "login"],
            reporter=PersonRef(id="user-emp-e1", name="Somkuan Electric"),
            created_at=_EPOCH + timedelta(days=1, hours=2),
        ),
        Report(
            id="report-002",
            title="Export work report as PDF",
            description="Need to export job reports as PDF for team leads.",
            type=ReportType.request,
            status=ReportStatus.in_progress,
            priority=JobPriority.medium,
            tags=["feature", "export", "pdf"],
            reporter=PersonRef(id="user-emp-e2", name="Pirai Electric"),
            assignee=PersonRef(id="user-lead-1", name="Somsak Lead"),
            created_at=_EPOCH + timedelta(days=1, hours=6),
            updated_at=_EPOCH + timedelta(days=1, hours=7),
        ),
        Report(
            id="report-003",
            title="Pipe wrench broke during use",
            type=ReportType.incident,
            status=ReportStatus.resolved,
            priority=JobPriority.urgent,
            reporter=PersonRef(id="user-emp-p1", name="Malee Plumbing"),
            assignee=PersonRef(id="user-manager-1", name="Wipa Manager"),
            related_inventory_id="inv-4",
            created_at=_EPOCH,
            updated_at=_EPOCH + timedelta(hours=8),
        ),
    ]
