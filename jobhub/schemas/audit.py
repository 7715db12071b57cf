import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AuditAction(str, enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
    approve = "approve"
    reject = "reject"
    assign = "assign"
    unassign = "unassign"


class AuditEntityType(str, enum.Enum):
    job = "job"
    inventory = "inventory"
    user = "user"
    report = "report"
    inventory_request = "inventory_request"
    completion_request = "completion_request"


class Actor(BaseModel):
    id: str
    name: str
    role: str


class FieldChange(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class AuditLog(BaseModel):
    id: str
    action: AuditAction
    entity_type: AuditEntityType
    entity_id: str
    entity_name: str
    performed_by: Actor
    timestamp: datetime
    details: Optional[str] = None
    changes: List[FieldChange] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    integrity_hash: Optional[str] = None
