from datetime import datetime, timezone

from jobhub.schemas.notifications import NotificationCreate, NotificationType
from jobhub.schemas.users import Role
from jobhub.services.notifications import STAFF_ROLES
from jobhub.stores.notifications import NotificationStore, format_timestamp


def _create(store, **kwargs):
    data = {"type": NotificationType.system, "title": "Hello"}
    data.update(kwargs)
    return store.add_notification(NotificationCreate(**data))


def test_format_timestamp_uses_zone():
    moment = datetime(2025, 1, 1, 0, 30, tzinfo=timezone.utc)
    assert format_timestamp("Asia/Bangkok", moment) == "01 Jan 2025 07:30"
    assert format_timestamp("Not/AZone", moment) == "01 Jan 2025 00:30"


def test_add_and_counts(storage):
    store = NotificationStore(storage).hydrate()
    first = _create(store)
    second = _create(store, title="Second")
    assert store.notifications[0].id == second.id
    assert store.unread_count == 2
    assert first.read is False and first.timestamp

    assert store.mark_as_read(first.id).ok
    assert store.unread_count == 1
    assert store.get_unread_count() == 1
    assert not store.mark_as_read("nope")

    assert store.delete_notification(second.id).ok
    assert store.unread_count == 0
    assert not store.delete_notification(second.id)


def test_unread_count_recomputed_on_hydrate(storage):
    store = NotificationStore(storage).hydrate()
    _create(store)
    _create(store)
    again = NotificationStore(storage).hydrate()
    assert again.unread_count == 2


def test_scoped_reads(storage):
    store = NotificationStore(storage).hydrate()
    _create(store, title="to e1", recipient_id="e1")
    _create(store, title="staff", audience=STAFF_ROLES)
    _create(store, title="everyone")

    employee_titles = [n.title for n in store.get_notifications_for_user("e1", Role.employee)]
    assert employee_titles == ["everyone", "to e1"]
    assert [n.title for n in store.get_notifications_for_user("e2", Role.employee)] == ["everyone"]
    assert len(store.get_notifications_for_user("m1", Role.manager)) == 2
    assert len(store.get_notifications_for_user("a1", Role.admin)) == 3
    assert store.get_unread_count_for_user("e2", Role.employee) == 1


def test_mark_all_scoped_to_user(admin_hub):
    store = admin_hub.notifications
    _create(store, title="to e1", recipient_id="user-emp-e1")
    _create(store, title="staff", audience=STAFF_ROLES)

    employee = admin_hub.users.get_user_by_id("user-emp-e2")
    assert store.mark_all_as_read(employee) == 0
    assert store.unread_count == 2

    manager = admin_hub.users.get_user_by_id("user-manager-1")
    assert store.mark_all_as_read(manager) == 1
    assert store.unread_count == 1

    assert store.mark_all_as_read() == 1
    assert store.unread_count == 0


def test_clear_all(storage):
    store = NotificationStore(storage).hydrate()
    _create(store)
    store.clear_all()
    assert store.notifications == [] and store.unread_count == 0
