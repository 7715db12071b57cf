from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth.security import get_current_user, get_hub, require_staff, unwrap_or_raise
from ..hub import Hub
from ..schemas.reports import Report, ReportCreate, ReportStatus, ReportUpdate
from ..schemas.users import User


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("", response_model=List[Report])
def list_reports(status: Optional[ReportStatus] = None, hub: Hub = Depends(get_hub), _=Depends(get_current_user)):
    return hub.reports.list_reports(status=status)


@router.post("/reorder")
def reorder_reports(ids: List[str] = Body(..., embed=True), hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    hub.reports.reorder_reports(ids)
    return {"ids": [r.id for r in hub.reports.reports]}


@router.get("/{report_id}", response_model=Report)
def get_report(report_id: str, hub: Hub = Depends(get_hub), _=Depends(get_current_user)):
    report = hub.reports.get_report_by_id(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.post("", response_model=Report, status_code=201)
def create_report(body: ReportCreate, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    # only staff may file on behalf of someone else
    if body.reporter_id != user.id:
        require_staff(user)
    return unwrap_or_raise(hub.reports.add_report(body))


@router.patch("/{report_id}", response_model=Report)
def update_report(report_id: str, body: ReportUpdate, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    return unwrap_or_raise(hub.reports.update_report(report_id, body))


@router.delete("/{report_id}")
def delete_report(report_id: str, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    removed = unwrap_or_raise(hub.reports.delete_report(report_id))
    return {"status": "ok", "deleted": removed is not None}
