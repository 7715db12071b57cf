from typing import List, Optional

from fastapi import APIRouter, Depends

from ..auth.security import get_hub, require_admin
from ..hub import Hub
from ..schemas.audit import AuditEntityType, AuditLog
from ..services.audit import verify_integrity


router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=List[AuditLog])
def list_audit_logs(
    entity_type: Optional[AuditEntityType] = None,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    hub: Hub = Depends(get_hub),
    _=Depends(require_admin),
):
    if entity_type is not None:
        logs = hub.audit.get_audit_logs_by_entity(entity_type, entity_id)
    elif user_id:
        return hub.audit.get_audit_logs_by_user(user_id)
    else:
        logs = hub.audit.get_audit_logs()
    if user_id:
        logs = [log for log in logs if log.performed_by.id == user_id]
    return logs


@router.get("/verify")
def verify_audit_logs(hub: Hub = Depends(get_hub), _=Depends(require_admin)):
    secret = hub.audit.integrity_secret
    failed = [log.id for log in hub.audit.audit_logs if not secret or not verify_integrity(log, secret)]
    return {"total": len(hub.audit.audit_logs), "failed": failed}


@router.delete("")
def clear_audit_logs(hub: Hub = Depends(get_hub), _=Depends(require_admin)):
    hub.audit.clear_audit_logs()
    return {"status": "ok"}
