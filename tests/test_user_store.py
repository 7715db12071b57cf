import pytest

from jobhub.schemas.notifications import NotificationType
from jobhub.schemas.users import Role, UserCreate, UserUpdate
from jobhub.services.results import ErrorCode, StoreOperationError


ADMIN_EMAIL = "somchai.admin@company.com"
PASSWORD = "password123"


def test_seeded_users(hub):
    roles = {u.role for u in hub.users.users}
    assert roles == {Role.admin, Role.manager, Role.lead_technician, Role.employee}
    assert hub.users.get_user_by_id("user-manager-1").department == "Electrical"
    assert hub.users.current_user is None
    assert hub.users.is_authenticated is False


def test_login_is_exact(hub):
    assert hub.users.login(ADMIN_EMAIL, PASSWORD).ok
    assert hub.users.current_user.id == "user-admin-1"
    assert hub.users.is_authenticated

    result = hub.users.login(ADMIN_EMAIL.upper(), PASSWORD)
    assert not result
    assert result.error.code == ErrorCode.INVALID_CREDENTIALS
    # a failed login clears the session
    assert hub.users.current_user is None
    assert hub.users.is_authenticated is False

    assert not hub.users.login(" " + ADMIN_EMAIL, PASSWORD)
    assert not hub.users.login(ADMIN_EMAIL, PASSWORD + " ")


def test_logout(admin_hub):
    admin_hub.users.logout()
    assert admin_hub.users.current_user is None
    assert not admin_hub.users.is_authenticated


def test_switch_user(hub):
    assert hub.users.switch_user_by_id("user-emp-p1").value.name == "Malee Plumbing"
    assert hub.users.is_authenticated
    missing = hub.users.switch_user_by_id("nope")
    assert missing.error.code == ErrorCode.NOT_FOUND
    assert hub.users.current_user.id == "user-emp-p1"


def test_create_user_defaults_and_side_effects(admin_hub):
    result = admin_hub.users.create_user(UserCreate(name="New Hire", email="new@company.com"))
    user = result.unwrap()
    assert user.password == "password123"
    assert user.image_url is None
    assert user.role == Role.employee
    assert admin_hub.users.users[-1].id == user.id

    logs = admin_hub.audit.get_audit_logs_by_entity("user", user.id)
    assert len(logs) == 1
    assert logs[0].performed_by.id == "user-admin-1"
    assert admin_hub.notifications.notifications[0].type == NotificationType.user_created


def test_create_user_duplicate_email(hub):
    before = list(hub.users.users)
    result = hub.users.create_user(UserCreate(name="Dup", email=ADMIN_EMAIL))
    assert result.error.code == ErrorCode.DUPLICATE_EMAIL
    assert hub.users.users == before
    with pytest.raises(StoreOperationError):
        result.unwrap()


def test_update_user_password_rules(hub):
    hub.users.update_user("user-emp-e1", UserUpdate(password=""))
    assert hub.users.get_user_by_id("user-emp-e1").password == PASSWORD

    hub.users.update_user("user-emp-e1", UserUpdate(password="s3cret"))
    assert hub.users.get_user_by_id("user-emp-e1").password == "s3cret"
    assert hub.users.login("emp1@company.com", "s3cret").ok


def test_update_user_duplicate_and_missing(hub):
    dup = hub.users.update_user("user-emp-e1", UserUpdate(email="emp2@company.com"))
    assert dup.error.code == ErrorCode.DUPLICATE_EMAIL
    assert hub.users.get_user_by_id("user-emp-e1").email == "emp1@company.com"

    # keeping your own email is not a duplicate
    assert hub.users.update_user("user-emp-e1", UserUpdate(email="emp1@company.com")).ok

    assert hub.users.update_user("ghost", UserUpdate(name="x")).error.code == ErrorCode.NOT_FOUND


def test_update_session_user_refreshes_session(admin_hub):
    admin_hub.users.update_user("user-admin-1", UserUpdate(name="Chief Admin"))
    assert admin_hub.users.current_user.name == "Chief Admin"
    assert admin_hub.users.current_user.id == "user-admin-1"


def test_update_user_audits_field_diff(admin_hub):
    admin_hub.users.update_user("user-emp-p2", UserUpdate(department="Electrical", phone="0812345678"))
    log = admin_hub.audit.get_audit_logs_by_entity("user", "user-emp-p2")[0]
    assert [c.field for c in log.changes] == ["department"]
    assert log.changes[0].old_value == "Plumbing"
    assert log.changes[0].new_value == "Electrical"


def test_delete_user(admin_hub):
    forbidden = admin_hub.users.delete_user("user-admin-1")
    assert forbidden.error.code == ErrorCode.FORBIDDEN
    assert admin_hub.users.get_user_by_id("user-admin-1") is not None

    assert admin_hub.users.delete_user("ghost").error.code == ErrorCode.NOT_FOUND

    count = len(admin_hub.users.users)
    assert admin_hub.users.delete_user("user-emp-p2").ok
    assert len(admin_hub.users.users) == count - 1
    assert admin_hub.users.get_user_by_id("user-emp-p2") is None


def test_reorder_users(hub):
    hub.users.reorder_users(["user-emp-p2", "user-lead-1", "missing"])
    ids = [u.id for u in hub.users.users]
    assert ids[:2] == ["user-emp-p2", "user-lead-1"]
    assert ids[2:] == ["user-admin-1", "user-manager-1", "user-emp-e1", "user-emp-e2", "user-emp-p1"]


def test_reset_users(admin_hub):
    admin_hub.users.create_user(UserCreate(name="Temp", email="temp@company.com"))
    admin_hub.users.reset_users()
    assert len(admin_hub.users.users) == 7
    assert admin_hub.users.current_user is None


def test_get_users_by_ids_keeps_order_and_skips_unknown(hub):
    users = hub.users.get_users_by_ids(["user-emp-e2", "missing", "user-emp-e1", "user-emp-e2"])
    assert [u.id for u in users] == ["user-emp-e2", "user-emp-e1"]


def test_list_users_filters(hub):
    assert {u.id for u in hub.users.list_users(department="Plumbing")} == {"user-emp-p1", "user-emp-p2"}
    assert [u.id for u in hub.users.list_users(role=Role.manager)] == ["user-manager-1"]
