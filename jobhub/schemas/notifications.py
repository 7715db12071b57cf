import enum
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from .users import Role


class NotificationType(str, enum.Enum):
    job_created = "job_created"
    job_updated = "job_updated"
    job_completed = "job_completed"
    job_assigned = "job_assigned"
    job_status_changed = "job_status_changed"
    report_submitted = "report_submitted"
    report_assigned = "report_assigned"
    report_resolved = "report_resolved"
    user_created = "user_created"
    inventory_low = "inventory_low"
    inventory_request_created = "inventory_request_created"
    inventory_request_approved = "inventory_request_approved"
    inventory_request_rejected = "inventory_request_rejected"
    task_assigned = "task_assigned"
    message = "message"
    comment = "comment"
    system = "system"


class NotificationCreate(BaseModel):
    type: NotificationType
    title: str
    description: str = ""
    user: Optional[str] = None
    link: Optional[str] = None
    # scoping: a recipient wins over an audience; neither means "everyone".
    # department narrows an audience to users of that department.
    recipient_id: Optional[str] = None
    audience: List[Role] = Field(default_factory=list)
    department: Optional[str] = None


class Notification(NotificationCreate):
    id: str
    read: bool = False
    timestamp: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
