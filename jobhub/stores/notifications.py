import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz
import structlog

from ..schemas.notifications import Notification, NotificationCreate
from ..schemas.users import Role, User
from ..services.results import ErrorCode, StoreResult
from ..services.visibility import notification_visible_to
from .base import PersistedStore, dump_models, find_index


logger = structlog.get_logger(__name__)


def format_timestamp(tz_name: str, now: Optional[datetime] = None) -> str:
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    now = now.astimezone(tz) if now else datetime.now(tz)
    return now.strftime("%d %b %Y %H:%M")


class NotificationStore(PersistedStore):
    name = "notification-storage"
    version = 1

    def __init__(self, storage, tz_name: str = "UTC", **kwargs):
        super().__init__(storage, **kwargs)
        self.tz_name = tz_name
        self.notifications: List[Notification] = []
        self.unread_count = 0

    def dump_state(self) -> Dict[str, Any]:
        return {"notifications": dump_models(self.notifications)}

    def load_state(self, state: Dict[str, Any]) -> None:
        self.notifications = [Notification.model_validate(x) for x in state.get("notifications") or []]
        self._recount()

    def _recount(self) -> None:
        self.unread_count = sum(1 for n in self.notifications if not n.read)

    def _commit(self) -> None:
        self._recount()
        self.persist()

    # -- mutations --------------------------------------------------------

    def add_notification(self, data: NotificationCreate) -> Notification:
        notification = Notification(
            id=str(uuid.uuid4()),
            read=False,
            timestamp=format_timestamp(self.tz_name),
            **data.model_dump(),
        )
        self.notifications.insert(0, notification)
        self._commit()
        logger.debug("notification_added", type=notification.type.value, recipient_id=notification.recipient_id)
        return notification

    def mark_as_read(self, notification_id: str) -> StoreResult[Notification]:
        idx = find_index(self.notifications, notification_id)
        if idx is None:
            logger.warning("notification_not_found", notification_id=notification_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Notification {notification_id} not found")
        self.notifications[idx] = self.notifications[idx].model_copy(update={"read": True})
        self._commit()
        return StoreResult.success(self.notifications[idx])

    def mark_all_as_read(self, user: Optional[User] = None) -> int:
        """Mark everything read, or only what `user` can see. Returns how many changed."""
        changed = 0
        for i, n in enumerate(self.notifications):
            if n.read:
                continue
            if user is not None and not notification_visible_to(n, user.id, user.role, user.department):
                continue
            self.notifications[i] = n.model_copy(update={"read": True})
            changed += 1
        self._commit()
        return changed

    def delete_notification(self, notification_id: str) -> StoreResult[None]:
        idx = find_index(self.notifications, notification_id)
        if idx is None:
            logger.warning("notification_not_found", notification_id=notification_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Notification {notification_id} not found")
        del self.notifications[idx]
        self._commit()
        return StoreResult.success()

    def clear_all(self) -> None:
        self.notifications = []
        self._commit()

    # -- reads --------------------------------------------------------------

    def get_unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def get_notifications_for_user(self, user_id: str, role: Role, department: Optional[str] = None) -> List[Notification]:
        items = [n for n in self.notifications if notification_visible_to(n, user_id, role, department)]
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def get_unread_count_for_user(self, user_id: str, role: Role, department: Optional[str] = None) -> int:
        return sum(1 for n in self.get_notifications_for_user(user_id, role, department) if not n.read)
