from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth.security import get_current_user, get_hub, require_staff, unwrap_or_raise
from ..hub import Hub
from ..schemas.inventory import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryRequest,
    InventoryRequestCreate,
    InventoryType,
    QuantityAdjustment,
    RequestDecision,
    RequestStatus,
    StockStatus,
)
from ..schemas.users import User
from ..services.visibility import can_view_job


router = APIRouter(prefix="/inventory", tags=["inventory"])


# =====================
# Items
# =====================

@router.get("/items", response_model=List[InventoryItem])
def list_items(
    type: Optional[InventoryType] = None,
    status: Optional[StockStatus] = None,
    hub: Hub = Depends(get_hub),
    _=Depends(get_current_user),
):
    return hub.inventory.list_items(type=type, status=status)


@router.get("/items/low-stock", response_model=List[InventoryItem])
def low_stock(hub: Hub = Depends(get_hub), _=Depends(get_current_user)):
    return hub.inventory.low_stock_items()


@router.post("/items/reorder")
def reorder_items(ids: List[str] = Body(..., embed=True), hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    hub.inventory.reorder_items(ids)
    return {"ids": [i.id for i in hub.inventory.items]}


@router.get("/items/{item_id}", response_model=InventoryItem)
def get_item(item_id: str, hub: Hub = Depends(get_hub), _=Depends(get_current_user)):
    item = hub.inventory.get_item_by_id(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.get("/items/{item_id}/jobs")
def jobs_using_item(item_id: str, hub: Hub = Depends(get_hub), _=Depends(get_current_user)):
    if not hub.inventory.get_item_by_id(item_id):
        raise HTTPException(status_code=404, detail="Item not found")
    return hub.inventory.jobs_using_item(item_id)


@router.post("/items", response_model=InventoryItem, status_code=201)
def create_item(body: InventoryItemCreate, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    return unwrap_or_raise(hub.inventory.add_item(body))


@router.patch("/items/{item_id}", response_model=InventoryItem)
def update_item(item_id: str, body: InventoryItemUpdate, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    return unwrap_or_raise(hub.inventory.update_item(item_id, body))


@router.post("/items/{item_id}/adjust", response_model=InventoryItem)
def adjust_quantity(item_id: str, body: QuantityAdjustment, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    return unwrap_or_raise(hub.inventory.adjust_quantity(item_id, body.delta))


@router.delete("/items/{item_id}")
def delete_item(item_id: str, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    removed = unwrap_or_raise(hub.inventory.delete_item(item_id))
    return {"status": "ok", "deleted": removed is not None}


# =====================
# Material requests
# =====================

@router.get("/requests", response_model=List[InventoryRequest])
def list_requests(
    job_id: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    hub: Hub = Depends(get_hub),
    _=Depends(require_staff),
):
    return hub.inventory.list_requests(job_id=job_id, status=status)


@router.post("/requests", response_model=InventoryRequest, status_code=201)
def create_request(body: InventoryRequestCreate, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    job = hub.jobs.get_job_by_id(body.job_id)
    if job is not None and not can_view_job(job, user):
        raise HTTPException(status_code=404, detail="Job not found")
    return unwrap_or_raise(hub.inventory.create_request(body.job_id, body.requester_id or user.id, body.items))


@router.post("/requests/{request_id}/approve", response_model=InventoryRequest)
def approve_request(request_id: str, hub: Hub = Depends(get_hub), user: User = Depends(require_staff)):
    return unwrap_or_raise(hub.inventory.approve_request(request_id, user.id))


@router.post("/requests/{request_id}/reject", response_model=InventoryRequest)
def reject_request(
    request_id: str,
    body: Optional[RequestDecision] = None,
    hub: Hub = Depends(get_hub),
    user: User = Depends(require_staff),
):
    return unwrap_or_raise(hub.inventory.reject_request(request_id, user.id, body.reason if body else None))


@router.get("/jobs/{job_id}/request-status")
def request_status(job_id: str, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    job = hub.jobs.get_job_by_id(job_id)
    if job is None or not can_view_job(job, user):
        raise HTTPException(status_code=404, detail="Job not found")
    status = hub.inventory.get_request_status(job_id)
    return {"job_id": job_id, "status": status.value if status else None}
