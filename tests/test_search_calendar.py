from datetime import datetime, timedelta, timezone

from jobhub.services.calendar import job_events
from jobhub.services.search import search


def _section(sections, key):
    return next(s for s in sections if s["key"] == key)


def test_blank_query_returns_empty_sections(hub):
    admin = hub.users.get_user_by_id("user-admin-1")
    for q in ("", "   "):
        sections = search(hub, q, admin)
        assert [s["key"] for s in sections] == ["jobs", "users", "inventory", "reports"]
        assert all(s["items"] == [] for s in sections)


def test_search_is_case_insensitive_and_scoped(hub):
    admin = hub.users.get_user_by_id("user-admin-1")
    plumber = hub.users.get_user_by_id("user-emp-p1")

    assert [i["id"] for i in _section(search(hub, "BREAKER", admin), "jobs")["items"]] == ["job-001"]
    # job-001 is not visible to a plumber
    assert _section(search(hub, "breaker", plumber), "jobs")["items"] == []
    assert [i["id"] for i in _section(search(hub, "pipe", plumber), "jobs")["items"]] == ["job-002"]


def test_search_users_by_name_or_role(hub):
    admin = hub.users.get_user_by_id("user-admin-1")
    by_role = _section(search(hub, "lead_tech", admin), "users")["items"]
    assert [i["id"] for i in by_role] == ["user-lead-1"]
    by_name = _section(search(hub, "plumbing", admin), "users")["items"]
    assert {i["id"] for i in by_name} == {"user-emp-p1", "user-emp-p2"}


def test_search_inventory_reports_and_limit(hub):
    admin = hub.users.get_user_by_id("user-admin-1")
    sections = search(hub, "pipe", admin)
    assert {i["id"] for i in _section(sections, "inventory")["items"]} == {"inv-2", "inv-4"}
    assert [i["id"] for i in _section(sections, "reports")["items"]] == ["report-003"]
    assert len(_section(search(hub, "e", admin, limit=2), "users")["items"]) == 2


def test_calendar_events(hub):
    manager = hub.users.get_user_by_id("user-manager-1")
    events = job_events(hub.jobs.jobs, manager)
    assert {e["id"] for e in events} == {"job-001", "job-003"}

    job1 = next(e for e in events if e["id"] == "job-001")
    assert job1["color"] == "blue"
    assert job1["category"] == "Electrical"
    assert job1["attendees"] == ["Somkuan Electric", "Pirai Electric"]
    assert job1["tags"] == ["in_progress"]
    assert job1["end"] - job1["start"] == timedelta(hours=6)

    # starts are sorted ascending
    assert [e["start"] for e in events] == sorted(e["start"] for e in events)


def test_calendar_default_duration_and_window(hub):
    admin = hub.users.get_user_by_id("user-admin-1")
    events = job_events(hub.jobs.jobs, admin)
    job2 = next(e for e in events if e["id"] == "job-002")
    assert job2["end"] - job2["start"] == timedelta(hours=2)
    assert job2["color"] == "orange"
    assert job2["category"] == "Plumbing"

    start = datetime(2025, 11, 21, tzinfo=timezone.utc)
    window = job_events(hub.jobs.jobs, admin, start=start, end=start + timedelta(days=1))
    assert [e["id"] for e in window] == ["job-001"]


def test_calendar_for_nobody(hub):
    assert job_events(hub.jobs.jobs, None) == []
