from jobhub.schemas.audit import Actor, AuditAction, AuditEntityType
from jobhub.schemas.users import UserCreate
from jobhub.services.audit import build_audit_log, compute_diff, verify_integrity
from jobhub.stores.audit import AuditLogStore


ACTOR = Actor(id="user-admin-1", name="Somchai Admin", role="admin")


def test_integrity_hash_round_trip():
    log = build_audit_log(
        AuditAction.update,
        AuditEntityType.job,
        "job-001",
        "Replace breaker panel",
        ACTOR,
        details="Updated",
        changes=compute_diff({"status": "pending"}, {"status": "in_progress"}),
        integrity_secret="s3cret",
    )
    assert log.integrity_hash and len(log.integrity_hash) == 64
    assert verify_integrity(log, "s3cret")
    assert not verify_integrity(log, "other")

    tampered = log.model_copy(update={"entity_name": "Something else"})
    assert not verify_integrity(tampered, "s3cret")


def test_no_secret_no_hash():
    log = build_audit_log(AuditAction.create, AuditEntityType.user, "u1", "User", ACTOR)
    assert log.integrity_hash is None
    assert not verify_integrity(log, "anything")


def test_compute_diff():
    changes = compute_diff({"a": 1, "b": 2, "c": 3}, {"a": 1, "b": 5, "d": 4})
    assert [(c.field, c.old_value, c.new_value) for c in changes] == [("b", 2, 5), ("c", 3, None), ("d", None, 4)]
    assert compute_diff({"a": 1, "b": 2}, {"a": 9, "b": 3}, fields=["b"])[0].field == "b"


def test_store_requires_actor(storage):
    store = AuditLogStore(storage).hydrate()
    assert store.record(AuditAction.create, AuditEntityType.job, "j1", "Job") is None
    assert store.audit_logs == []


def test_store_queries(admin_hub):
    admin_hub.users.create_user(UserCreate(name="A", email="a@company.com"))
    admin_hub.users.create_user(UserCreate(name="B", email="b@company.com"))
    logs = admin_hub.audit.get_audit_logs()
    # newest first
    assert [log.entity_name for log in logs] == ["B", "A"]
    assert all(verify_integrity(log, "test-secret") for log in logs)
    assert len(admin_hub.audit.get_audit_logs_by_entity(AuditEntityType.user)) == 2
    assert admin_hub.audit.get_audit_logs_by_entity(AuditEntityType.job) == []
    assert len(admin_hub.audit.get_audit_logs_by_user("user-admin-1")) == 2

    admin_hub.audit.clear_audit_logs()
    assert admin_hub.audit.get_audit_logs() == []
