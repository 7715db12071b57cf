"""
Role-based visibility.

One predicate per entity kind. Calendar, search, dashboards and job lists
all filter through here; nothing else decides who sees what.
"""
from typing import Iterable, List, Optional

from ..schemas.jobs import Job
from ..schemas.notifications import Notification
from ..schemas.users import Role, User


def can_view_job(job: Job, user: Optional[User]) -> bool:
    """
    - Admin sees every job
    - Manager sees jobs of their department, plus jobs they created, lead or are assigned to
    - Lead technician sees jobs they lead, created or are assigned to
    - Everyone else sees jobs they created or are assigned to
    """
    if user is None:
        return False
    role = Role(user.role)
    if role == Role.admin:
        return True

    uid = user.id
    related = job.is_assigned(uid) or job.is_creator(uid)
    if role == Role.manager:
        same_department = bool(job.department and user.department and job.department == user.department)
        return same_department or related or job.is_lead(uid)
    if role == Role.lead_technician:
        return related or job.is_lead(uid)
    return related


def visible_jobs(jobs: Iterable[Job], user: Optional[User]) -> List[Job]:
    return [job for job in jobs if can_view_job(job, user)]


def notification_visible_to(
    notification: Notification, user_id: str, role: Role, department: Optional[str] = None
) -> bool:
    """
    - Admin sees every notification
    - Others see notifications addressed to them, and untargeted ones whose
      audience is empty or includes their role
    - A department-tagged notification additionally needs a matching department
    """
    role = Role(role)
    if role == Role.admin:
        return True
    if notification.recipient_id:
        return notification.recipient_id == user_id
    if notification.department and notification.department != department:
        return False
    if not notification.audience:
        return True
    return role in notification.audience


def can_view_notification(notification: Notification, user: Optional[User]) -> bool:
    if user is None:
        return False
    return notification_visible_to(notification, user.id, user.role, user.department)
