import enum
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from .jobs import JobPriority


class ReportStatus(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


class ReportType(str, enum.Enum):
    bug = "bug"
    request = "request"
    incident = "incident"
    improvement = "improvement"


class PersonRef(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None


class ReportAttachment(BaseModel):
    id: str
    file_name: str
    url: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Report(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    type: ReportType = ReportType.request
    status: ReportStatus = ReportStatus.open
    priority: Optional[JobPriority] = None
    tags: List[str] = Field(default_factory=list)
    reporter: PersonRef
    assignee: Optional[PersonRef] = None
    related_job_id: Optional[str] = None
    related_inventory_id: Optional[str] = None
    attachments: List[ReportAttachment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None


class ReportCreate(BaseModel):
    title: str
    reporter_id: str
    description: Optional[str] = None
    type: ReportType = ReportType.request
    priority: Optional[JobPriority] = None
    tags: List[str] = Field(default_factory=list)
    assignee_id: Optional[str] = None
    related_job_id: Optional[str] = None
    related_inventory_id: Optional[str] = None
    attachments: List[ReportAttachment] = Field(default_factory=list)


class ReportUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ReportType] = None
    status: Optional[ReportStatus] = None
    priority: Optional[JobPriority] = None
    tags: Optional[List[str]] = None
    assignee_id: Optional[str] = None
    related_job_id: Optional[str] = None
    related_inventory_id: Optional[str] = None
    attachments: Optional[List[ReportAttachment]] = None
