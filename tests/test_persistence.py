import json

import pytest

from jobhub.hub import Hub
from jobhub.schemas.jobs import JobCreate, JobStatus
from jobhub.schemas.users import Role, UserCreate
from jobhub.storage.db_provider import DatabaseStateStorage
from jobhub.storage.local_provider import LocalStateStorage
from jobhub.storage.provider import MemoryStateStorage
from jobhub.stores.jobs import JobStore
from jobhub.stores.users import UserStore


def _envelope(state, version):
    return json.dumps({"state": state, "version": version})


def test_envelope_shape(hub, storage):
    raw = json.loads(storage.get_item("user-management-storage"))
    assert raw["version"] == 1
    assert len(raw["state"]["users"]) == 7
    assert set(storage.keys()) >= {
        "user-management-storage",
        "job-management-storage",
        "inventory-storage",
        "report-storage",
    }


def test_round_trip_reproduces_collections(admin_hub, storage):
    admin_hub.users.create_user(UserCreate(name="Round Trip", email="rt@company.com", role=Role.manager, skills=["a"]))
    admin_hub.jobs.create_job(JobCreate(title="Persist me", creator_id="user-admin-1", assigned_employee_ids=["user-emp-e1"]))
    admin_hub.jobs.transition_job("job-002", JobStatus.in_progress)

    fresh = Hub(storage, tz_name="Asia/Bangkok", audit_secret="test-secret").hydrate()
    assert fresh.users.users == admin_hub.users.users
    assert fresh.jobs.jobs == admin_hub.jobs.jobs
    assert fresh.inventory.items == admin_hub.inventory.items
    assert fresh.reports.reports == admin_hub.reports.reports
    assert fresh.notifications.notifications == admin_hub.notifications.notifications
    assert fresh.audit.audit_logs == admin_hub.audit.audit_logs
    assert fresh.users.current_user.id == "user-admin-1"
    assert fresh.notifications.unread_count == len(admin_hub.notifications.notifications)


def test_seeding_only_when_empty(storage):
    storage.set_item("user-management-storage", _envelope({"users": [
        {"id": "u1", "name": "Only", "email": "only@x.com", "password": "pw", "role": "admin"}
    ]}, 1))
    users = UserStore(storage).hydrate()
    assert [u.id for u in users.users] == ["u1"]
    assert users.is_hydrated


def test_seed_disabled(storage):
    users = UserStore(storage, seed_on_empty=False).hydrate()
    assert users.users == []
    assert storage.get_item("user-management-storage") is None


def test_user_migration_from_v0(storage):
    storage.set_item("user-management-storage", _envelope({"users": [
        {"id": "abcd1234", "name": "Legacy", "role": "superuser"},
        {"id": "u2", "name": "Kept", "email": "kept@x.com", "password": "pw", "role": "manager"},
    ]}, 0))
    users = UserStore(storage).hydrate()
    legacy = users.get_user_by_id("abcd1234")
    assert legacy.email == "migrated-abcd@example.com"
    assert legacy.password == "password123"
    assert legacy.role == Role.employee
    kept = users.get_user_by_id("u2")
    assert (kept.email, kept.password, kept.role) == ("kept@x.com", "pw", Role.manager)
    assert json.loads(storage.get_item("user-management-storage"))["version"] == 1


def test_job_migration_from_v1(storage):
    users = UserStore(storage).hydrate()
    storage.set_item("job-management-storage", _envelope({
        "jobs": [{
            "id": "legacy-1",
            "title": "Old job",
            "status": "pending",
            "departments": ["Plumbing", "Electrical"],
            "creator": {"id": "user-admin-1", "name": "Somchai Admin", "role": "admin"},
            "tasks": None,
        }],
        "currentUser": {"id": "user-admin-1"},
        "users": [],
        "isAuthenticated": True,
    }, 1))
    jobs = JobStore(storage, users).hydrate()
    job = jobs.get_job_by_id("legacy-1")
    assert job.department == "Plumbing"
    assert job.tasks == [] and job.work_logs == [] and job.used_inventory == [] and job.attachments == []

    raw = json.loads(storage.get_item("job-management-storage"))
    assert raw["version"] == 2
    assert set(raw["state"]) == {"jobs"}
    assert "departments" not in raw["state"]["jobs"][0]


def test_corrupt_state_falls_back_to_seed(storage):
    storage.set_item("user-management-storage", "{not json")
    users = UserStore(storage).hydrate()
    assert len(users.users) == 7


def test_inventory_status_is_derived_on_load(storage):
    storage.set_item("inventory-storage", _envelope({"items": [
        {"id": "i1", "name": "Fuse", "quantity": 0, "reorder_point": 2, "status": "ready"}
    ], "requests": []}, 1))
    hub = Hub(storage).hydrate()
    assert hub.inventory.get_item_by_id("i1").status.value == "out"


@pytest.mark.parametrize("backend", ["local", "database"])
def test_durable_backends(tmp_path, backend):
    if backend == "local":
        make = lambda: LocalStateStorage(str(tmp_path / "state"))
    else:
        url = f"sqlite:///{tmp_path / 'state.db'}"
        make = lambda: DatabaseStateStorage(url)

    first = Hub(make()).hydrate()
    first.users.create_user(UserCreate(name="Durable", email="durable@company.com"))

    second = Hub(make()).hydrate()
    assert "durable@company.com" in [u.email for u in second.users.users]
    assert second.users.users == first.users.users

    storage = make()
    storage.remove_item("user-management-storage")
    assert storage.get_item("user-management-storage") is None
    assert "user-management-storage" not in storage.keys()


def test_memory_storage_contract():
    storage = MemoryStateStorage({"b": "2"})
    storage.set_item("a", "1")
    assert storage.keys() == ["a", "b"]
    storage.remove_item("missing")
    storage.remove_item("a")
    assert storage.get_item("a") is None
