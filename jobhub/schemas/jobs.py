import enum
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .users import CreatorSnapshot, UserSnapshot


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    pending_approval = "pending_approval"
    completed = "completed"
    cancelled = "cancelled"
    rejected = "rejected"


class JobPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class CustomerType(str, enum.Enum):
    individual = "individual"
    organization = "organization"


class Task(BaseModel):
    id: str
    description: str
    details: Optional[str] = None
    is_completed: bool = False
    order: int = 0


class TaskInput(BaseModel):
    id: Optional[str] = None
    description: str
    details: Optional[str] = None
    is_completed: Optional[bool] = None
    order: Optional[int] = None


class Attachment(BaseModel):
    id: str
    file_name: str
    file_type: str
    size: int = 0
    url: str
    uploaded_at: datetime = Field(default_factory=_utcnow)


class UsedInventory(BaseModel):
    id: str
    qty: int = Field(default=1, ge=1)


class JobLocation(BaseModel):
    lat: float
    lng: float
    name: Optional[str] = None


class WorkLog(BaseModel):
    id: str
    date: datetime = Field(default_factory=_utcnow)
    status: JobStatus
    note: str = ""
    updated_by: Optional[CreatorSnapshot] = None


class CustomerInfo(BaseModel):
    customer_type: CustomerType = CustomerType.individual
    name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None

    @model_validator(mode="after")
    def _organization_fields_only_for_organizations(self):
        if self.customer_type == CustomerType.individual:
            self.company_name = None
            self.tax_id = None
            self.address = None
        return self


class Job(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: JobStatus = JobStatus.pending
    department: Optional[str] = None
    priority: Optional[JobPriority] = None
    creator: CreatorSnapshot
    assigned_employees: List[UserSnapshot] = Field(default_factory=list)
    lead_technician: Optional[UserSnapshot] = None
    tasks: List[Task] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    used_inventory: List[UsedInventory] = Field(default_factory=list)
    work_logs: List[WorkLog] = Field(default_factory=list)
    customer: Optional[CustomerInfo] = None
    signature: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[JobLocation] = None

    @field_validator("tasks")
    @classmethod
    def _tasks_in_order(cls, v: List[Task]) -> List[Task]:
        return sorted(v, key=lambda t: t.order)

    def is_assigned(self, user_id: str) -> bool:
        return any(u.id == user_id for u in self.assigned_employees)

    def is_creator(self, user_id: str) -> bool:
        return self.creator.id == user_id

    def is_lead(self, user_id: str) -> bool:
        return self.lead_technician is not None and self.lead_technician.id == user_id


class JobCreate(BaseModel):
    title: str
    creator_id: Optional[str] = None
    description: Optional[str] = None
    department: Optional[str] = None
    priority: Optional[JobPriority] = None
    # accepted for compatibility but ignored: new jobs always start pending
    status: Optional[JobStatus] = None
    assigned_employee_ids: List[str] = Field(default_factory=list)
    lead_technician_id: Optional[str] = None
    tasks: List[TaskInput] = Field(default_factory=list)
    used_inventory: List[UsedInventory] = Field(default_factory=list)
    customer: Optional[CustomerInfo] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[JobLocation] = None

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("description", "department", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class JobUpdate(BaseModel):
    """Partial update. Reference ids are re-resolved only when present in the payload."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[JobStatus] = None
    department: Optional[str] = None
    priority: Optional[JobPriority] = None
    creator_id: Optional[str] = None
    assigned_employee_ids: Optional[List[str]] = None
    lead_technician_id: Optional[str] = None
    tasks: Optional[List[TaskInput]] = None
    attachments: Optional[List[Attachment]] = None
    used_inventory: Optional[List[UsedInventory]] = None
    customer: Optional[CustomerInfo] = None
    signature: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[JobLocation] = None


class JobTransition(BaseModel):
    status: JobStatus
    note: Optional[str] = None
