import enum
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from .jobs import UsedInventory
from .users import CreatorSnapshot


class InventoryType(str, enum.Enum):
    device = "Device"
    accessory = "Accessory"
    tool = "Tool"
    other = "Other"


class StockStatus(str, enum.Enum):
    ready = "ready"
    low = "low"
    out = "out"


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


def stock_status_for(quantity: int, reorder_point: int) -> StockStatus:
    if quantity <= 0:
        return StockStatus.out
    if quantity <= reorder_point:
        return StockStatus.low
    return StockStatus.ready


class InventoryItemBase(BaseModel):
    name: str
    quantity: int = Field(default=0, ge=0)
    location: str = ""
    type: InventoryType = InventoryType.other
    price: float = Field(default=0, ge=0)
    require_from: Optional[str] = None
    reorder_point: int = Field(default=5, ge=0)
    image_url: Optional[str] = None

    @field_validator("require_from", "image_url", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    location: Optional[str] = None
    type: Optional[InventoryType] = None
    price: Optional[float] = Field(default=None, ge=0)
    require_from: Optional[str] = None
    reorder_point: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None


class InventoryItem(InventoryItemBase):
    id: str

    @computed_field
    @property
    def status(self) -> StockStatus:
        return stock_status_for(self.quantity, self.reorder_point)


class InventoryRequestCreate(BaseModel):
    job_id: str
    requester_id: Optional[str] = None
    items: List[UsedInventory]


class InventoryRequest(BaseModel):
    id: str
    job_id: str
    requester: CreatorSnapshot
    items: List[UsedInventory]
    status: RequestStatus = RequestStatus.pending
    reason: Optional[str] = None
    decided_by: Optional[CreatorSnapshot] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    decided_at: Optional[datetime] = None


class RequestDecision(BaseModel):
    reason: Optional[str] = None


class QuantityAdjustment(BaseModel):
    delta: int
