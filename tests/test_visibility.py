from jobhub.schemas.jobs import Job, JobCreate
from jobhub.schemas.notifications import Notification, NotificationType
from jobhub.schemas.users import CreatorSnapshot, Role, User, UserSnapshot
from jobhub.services.visibility import can_view_job, can_view_notification, visible_jobs


def _user(uid, role, department=None):
    return User(id=uid, name=uid, email=f"{uid}@x.com", password="pw", role=role, department=department)


def _job(jid, department=None, creator="someone", assignees=(), lead=None):
    return Job(
        id=jid,
        title=jid,
        department=department,
        creator=CreatorSnapshot(id=creator, name=creator, role=Role.admin),
        assigned_employees=[UserSnapshot(id=a, name=a, role=Role.employee) for a in assignees],
        lead_technician=UserSnapshot(id=lead, name=lead, role=Role.lead_technician) if lead else None,
    )


def test_none_user_sees_nothing():
    assert not can_view_job(_job("j1"), None)
    assert visible_jobs([_job("j1")], None) == []


def test_admin_sees_everything():
    admin = _user("a", Role.admin)
    jobs = [_job("j1"), _job("j2", department="Plumbing")]
    assert visible_jobs(jobs, admin) == jobs


def test_manager_department_scope():
    manager = _user("m", Role.manager, department="Electrical")
    jobs = [
        _job("same-dept", department="Electrical"),
        _job("other-dept", department="Plumbing"),
        _job("assigned", department="Plumbing", assignees=["m"]),
        _job("created", creator="m"),
        _job("led", lead="m"),
        _job("no-dept"),
    ]
    assert [j.id for j in visible_jobs(jobs, manager)] == ["same-dept", "assigned", "created", "led"]


def test_manager_without_department_matches_nothing_by_department():
    manager = _user("m", Role.manager)
    assert not can_view_job(_job("j", department=None), manager)
    assert not can_view_job(_job("j", department="Electrical"), manager)


def test_lead_and_employee_scope():
    lead = _user("l", Role.lead_technician, department="Electrical")
    employee = _user("e", Role.employee, department="Electrical")
    jobs = [
        _job("led", lead="l"),
        _job("assigned-l", assignees=["l"]),
        _job("assigned-e", assignees=["e"]),
        _job("created-e", creator="e"),
        _job("dept-only", department="Electrical"),
    ]
    assert [j.id for j in visible_jobs(jobs, lead)] == ["led", "assigned-l"]
    assert [j.id for j in visible_jobs(jobs, employee)] == ["assigned-e", "created-e"]
    # an employee who is named lead but not assigned does not see the job
    assert not can_view_job(_job("x", lead="e"), employee)


def test_manager_sees_new_job_in_department(admin_hub):
    job = admin_hub.jobs.create_job(
        JobCreate(title="Fix lights", creator_id="user-admin-1", department="Electrical", assigned_employee_ids=["user-emp-e1"])
    ).unwrap()
    manager = admin_hub.users.get_user_by_id("user-manager-1")
    plumber = admin_hub.users.get_user_by_id("user-emp-p1")
    assert job.id in [j.id for j in visible_jobs(admin_hub.jobs.jobs, manager)]
    assert job.id not in [j.id for j in visible_jobs(admin_hub.jobs.jobs, plumber)]


def _notification(recipient_id=None, audience=(), department=None):
    return Notification(
        id="n",
        type=NotificationType.system,
        title="t",
        timestamp="now",
        recipient_id=recipient_id,
        audience=list(audience),
        department=department,
    )


def test_notification_scoping():
    admin = _user("a", Role.admin)
    manager = _user("m", Role.manager)
    employee = _user("e", Role.employee)

    targeted = _notification(recipient_id="e")
    assert can_view_notification(targeted, employee)
    assert not can_view_notification(targeted, manager)
    assert can_view_notification(targeted, admin)

    staff_only = _notification(audience=[Role.admin, Role.manager])
    assert can_view_notification(staff_only, manager)
    assert not can_view_notification(staff_only, employee)

    broadcast = _notification()
    assert all(can_view_notification(broadcast, u) for u in (admin, manager, employee))
    assert not can_view_notification(broadcast, None)


def test_department_tagged_notification():
    admin = _user("a", Role.admin)
    plumbing = _user("m1", Role.manager, "Plumbing")
    electrical = _user("m2", Role.manager, "Electrical")
    lead = _user("l", Role.lead_technician, "Plumbing")

    tagged = _notification(audience=[Role.manager], department="Plumbing")
    assert can_view_notification(tagged, plumbing)
    assert not can_view_notification(tagged, electrical)
    assert not can_view_notification(tagged, lead)
    assert can_view_notification(tagged, admin)
