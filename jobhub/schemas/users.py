import enum
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Role(str, enum.Enum):
    admin = "admin"
    manager = "manager"
    lead_technician = "lead_technician"
    employee = "employee"


class UserBase(BaseModel):
    name: str
    email: str
    role: Role = Role.employee
    department: Optional[str] = None
    image_url: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    employment_type: Optional[str] = None
    job_title: Optional[str] = None
    hire_date: Optional[str] = None
    status: str = "active"

    @field_validator("department", "image_url", "phone", "bio", "employment_type", "job_title", "hire_date", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class UserCreate(UserBase):
    password: Optional[str] = None


class UserUpdate(BaseModel):
    """Partial update. Only fields that were explicitly set are applied."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    department: Optional[str] = None
    image_url: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    employment_type: Optional[str] = None
    job_title: Optional[str] = None
    hire_date: Optional[str] = None
    status: Optional[str] = None


class User(UserBase):
    id: str
    password: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def snapshot(self) -> "UserSnapshot":
        return UserSnapshot(
            id=self.id,
            name=self.name,
            role=self.role,
            image_url=self.image_url,
            email=self.email,
            department=self.department,
        )

    def creator_snapshot(self) -> "CreatorSnapshot":
        return CreatorSnapshot(id=self.id, name=self.name, role=self.role)


class UserPublic(UserBase):
    """User as returned over HTTP (no password)."""

    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserSnapshot(BaseModel):
    id: str
    name: str
    role: Role
    image_url: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None


class CreatorSnapshot(BaseModel):
    id: str
    name: str
    role: Role


class LoginRequest(BaseModel):
    email: str
    password: str
