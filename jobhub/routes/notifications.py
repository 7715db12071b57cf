from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user, get_hub, unwrap_or_raise
from ..hub import Hub
from ..schemas.notifications import Notification
from ..schemas.users import User
from ..services.visibility import can_view_notification


router = APIRouter(prefix="/notifications", tags=["notifications"])


def _visible_or_404(hub: Hub, notification_id: str, user: User) -> Notification:
    notification = next((n for n in hub.notifications.notifications if n.id == notification_id), None)
    if notification is None or not can_view_notification(notification, user):
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("", response_model=List[Notification])
def list_notifications(unread_only: bool = False, limit: int = 50, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    items = hub.notifications.get_notifications_for_user(user.id, user.role, user.department)
    if unread_only:
        items = [n for n in items if not n.read]
    return items[: max(1, min(limit, 200))]


@router.get("/unread-count")
def unread_count(hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    return {"count": hub.notifications.get_unread_count_for_user(user.id, user.role, user.department)}


@router.post("/read-all")
def mark_all_read(hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    changed = hub.notifications.mark_all_as_read(user)
    return {"status": "ok", "updated": changed}


@router.post("/{notification_id}/read", response_model=Notification)
def mark_read(notification_id: str, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    _visible_or_404(hub, notification_id, user)
    return unwrap_or_raise(hub.notifications.mark_as_read(notification_id))


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    _visible_or_404(hub, notification_id, user)
    unwrap_or_raise(hub.notifications.delete_notification(notification_id))
    return {"status": "ok"}
