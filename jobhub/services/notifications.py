"""
Notification service.
Builds typed notifications for domain events and hands them to the store.
"""
from typing import List, Optional

from ..schemas.notifications import Notification, NotificationCreate, NotificationType
from ..schemas.users import Role
from .job_status import status_label


STAFF_ROLES = [Role.admin, Role.manager, Role.lead_technician]


class Notifier:
    def __init__(self, store):
        self.store = store

    def _send(
        self,
        notification_type: NotificationType,
        title: str,
        description: str,
        user: Optional[str] = None,
        link: Optional[str] = None,
        recipient_id: Optional[str] = None,
        audience: Optional[List[Role]] = None,
        department: Optional[str] = None,
    ) -> Notification:
        return self.store.add_notification(
            NotificationCreate(
                type=notification_type,
                title=title,
                description=description,
                user=user,
                link=link,
                recipient_id=recipient_id,
                audience=audience or [],
                department=department,
            )
        )

    # -- jobs ------------------------------------------------------------------

    def _job_scope(self, department: Optional[str]) -> dict:
        """Managers of the job's department; admins only when it has none."""
        if department:
            return {"audience": [Role.manager], "department": department}
        return {"audience": [Role.admin]}

    def job_created(self, job_title: str, creator_name: str, job_id: str, department: Optional[str] = None) -> Notification:
        return self._send(
            NotificationType.job_created,
            f"New job: {job_title}",
            f"{creator_name} created a new job",
            user=creator_name,
            link=f"/dashboard/admin/jobs/{job_id}",
            **self._job_scope(department),
        )

    def job_updated(self, job_title: str, updater_name: str, job_id: str, department: Optional[str] = None) -> Notification:
        return self._send(
            NotificationType.job_updated,
            f"Job updated: {job_title}",
            f"{updater_name} updated the job",
            user=updater_name,
            link=f"/dashboard/admin/jobs/{job_id}",
            **self._job_scope(department),
        )

    def job_completed(self, job_title: str, completer_name: str, job_id: str, department: Optional[str] = None) -> Notification:
        return self._send(
            NotificationType.job_completed,
            f"Job completed: {job_title}",
            f"{completer_name} completed the job",
            user=completer_name,
            link=f"/dashboard/admin/jobs/{job_id}",
            **self._job_scope(department),
        )

    def job_assigned(self, job_title: str, assigner_name: str, job_id: str, assignee_id: str) -> Notification:
        return self._send(
            NotificationType.job_assigned,
            f"Job assigned: {job_title}",
            f"{assigner_name} assigned a job to you",
            user=assigner_name,
            link=f"/dashboard/employee/jobs/{job_id}",
            recipient_id=assignee_id,
        )

    def job_status_changed(self, job_title: str, status: str, job_id: str, recipient_id: Optional[str] = None) -> Notification:
        return self._send(
            NotificationType.job_status_changed,
            f"Job status changed: {job_title}",
            f"Status changed to: {status_label(status)}",
            link=f"/dashboard/employee/jobs/{job_id}",
            recipient_id=recipient_id,
        )

    # -- reports ------------------------------------------------------------------

    def report_submitted(self, report_title: str, reporter_name: str, report_id: str) -> Notification:
        return self._send(
            NotificationType.report_submitted,
            f"New report: {report_title}",
            f"{reporter_name} submitted a new report",
            user=reporter_name,
            link="/dashboard/admin/reports",
            audience=STAFF_ROLES,
        )

    def report_assigned(self, report_title: str, assignee_name: str, report_id: str, assignee_id: str) -> Notification:
        return self._send(
            NotificationType.report_assigned,
            f"Report assigned: {report_title}",
            f"Assigned to {assignee_name}",
            user=assignee_name,
            link="/dashboard/admin/reports",
            recipient_id=assignee_id,
        )

    def report_resolved(self, report_title: str, resolver_name: str, report_id: str, reporter_id: str) -> Notification:
        return self._send(
            NotificationType.report_resolved,
            f"Report resolved: {report_title}",
            f"{resolver_name} resolved the report",
            user=resolver_name,
            link="/dashboard/admin/reports",
            recipient_id=reporter_id,
        )

    # -- users / inventory -------------------------------------------------------------

    def user_created(self, user_name: str, user_id: str) -> Notification:
        return self._send(
            NotificationType.user_created,
            f"New user: {user_name}",
            "A new user was added to the system",
            user=user_name,
            link=f"/dashboard/admin/users/{user_id}",
            audience=[Role.admin],
        )

    def inventory_low(self, item_name: str, quantity: int) -> Notification:
        return self._send(
            NotificationType.inventory_low,
            f"Low stock: {item_name}",
            f"Only {quantity} left",
            link="/dashboard/admin/inventorys",
            audience=STAFF_ROLES,
        )

    def inventory_request_created(
        self, job_title: str, requester_name: str, request_id: str, job_id: str, department: Optional[str] = None
    ) -> Notification:
        return self._send(
            NotificationType.inventory_request_created,
            f"Material request: {job_title}",
            f"{requester_name} requested materials",
            user=requester_name,
            link=f"/dashboard/admin/jobs/{job_id}",
            **self._job_scope(department),
        )

    def inventory_request_approved(self, job_title: str, approver_name: str, request_id: str, job_id: str, requester_id: str) -> Notification:
        return self._send(
            NotificationType.inventory_request_approved,
            f"Material request approved: {job_title}",
            f"{approver_name} approved the material request",
            user=approver_name,
            link=f"/dashboard/employee/jobs/{job_id}",
            recipient_id=requester_id,
        )

    def inventory_request_rejected(
        self,
        job_title: str,
        rejecter_name: str,
        request_id: str,
        job_id: str,
        requester_id: str,
        reason: Optional[str] = None,
    ) -> Notification:
        if reason:
            description = f"{rejecter_name} rejected the request: {reason}"
        else:
            description = f"{rejecter_name} rejected the material request"
        return self._send(
            NotificationType.inventory_request_rejected,
            f"Material request rejected: {job_title}",
            description,
            user=rejecter_name,
            link=f"/dashboard/employee/jobs/{job_id}",
            recipient_id=requester_id,
        )
