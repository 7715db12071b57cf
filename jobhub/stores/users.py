import uuid
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..schemas.audit import AuditAction, AuditEntityType
from ..schemas.users import Role, User, UserCreate, UserUpdate
from ..seed_data import seed_users
from ..services.audit import compute_diff
from ..services.events import EventBus, UserProfileChanged
from ..services.results import ErrorCode, StoreResult
from .base import PersistedStore, dump_models, find_index, reorder_by_ids


logger = structlog.get_logger(__name__)

# changes to these fields are copied into job snapshots
SNAPSHOT_FIELDS = ("name", "image_url", "role", "email", "department")
AUDITED_FIELDS = ("name", "email", "role", "department", "status")


class UserStore(PersistedStore):
    name = "user-management-storage"
    version = 1

    def __init__(
        self,
        storage,
        events: Optional[EventBus] = None,
        audit=None,
        notifier=None,
        default_password: str = "password123",
        **kwargs,
    ):
        super().__init__(storage, **kwargs)
        self.events = events or EventBus()
        self.audit = audit
        self.notifier = notifier
        self.default_password = default_password
        self.users: List[User] = []
        self.current_user: Optional[User] = None
        self.is_authenticated = False

    # -- persistence --------------------------------------------------------------

    def dump_state(self) -> Dict[str, Any]:
        return {
            "users": dump_models(self.users),
            "current_user_id": self.current_user.id if self.current_user else None,
            "is_authenticated": self.is_authenticated,
        }

    def load_state(self, state: Dict[str, Any]) -> None:
        self.users = [User.model_validate(x) for x in state.get("users") or []]
        current_id = state.get("current_user_id")
        self.current_user = self.get_user_by_id(current_id) if current_id else None
        self.is_authenticated = bool(state.get("is_authenticated")) and self.current_user is not None

    def is_empty(self) -> bool:
        return not self.users

    def seed(self) -> None:
        self.users = seed_users()

    def migrate(self, state: Dict[str, Any], version: int) -> Dict[str, Any]:
        if version == 0:
            state.setdefault("is_authenticated", False)
            state.setdefault("current_user_id", None)
            valid_roles = {r.value for r in Role}
            migrated = []
            for user in state.get("users") or []:
                user = dict(user)
                uid = str(user.get("id") or uuid.uuid4())
                user["id"] = uid
                user["email"] = user.get("email") or f"migrated-{uid[:4]}@example.com"
                user["password"] = user.get("password") or self.default_password
                if user.get("role") not in valid_roles:
                    user["role"] = Role.employee.value
                migrated.append(user)
            state["users"] = migrated
        return state

    # -- session -------------------------------------------------------------------

    def login(self, email: str, password: str) -> StoreResult[User]:
        found = next((u for u in self.users if u.email == email and u.password == password), None)
        if found is None:
            self.is_authenticated = False
            self.current_user = None
            self.persist()
            logger.warning("login_failed", email=email)
            return StoreResult.failure(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")
        self.is_authenticated = True
        self.current_user = found
        self.persist()
        logger.info("login_succeeded", user_id=found.id, role=found.role.value)
        return StoreResult.success(found)

    def logout(self) -> None:
        self.is_authenticated = False
        self.current_user = None
        self.persist()
        logger.info("logged_out")

    def switch_user_by_id(self, user_id: str) -> StoreResult[User]:
        """Impersonation for demos and debugging. No credential check."""
        user = self.get_user_by_id(user_id)
        if user is None:
            logger.warning("switch_user_not_found", user_id=user_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"User {user_id} not found")
        self.current_user = user
        self.is_authenticated = True
        self.persist()
        logger.info("switched_user", user_id=user.id, role=user.role.value)
        return StoreResult.success(user)

    # -- mutations -------------------------------------------------------------------

    def _email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        return any(u.email == email and u.id != exclude_id for u in self.users)

    def create_user(self, data: UserCreate) -> StoreResult[User]:
        if self._email_taken(data.email):
            logger.error("create_user_duplicate_email", email=data.email)
            return StoreResult.failure(ErrorCode.DUPLICATE_EMAIL, "Email already exists")

        fields = data.model_dump(exclude={"password"})
        user = User(id=str(uuid.uuid4()), password=data.password or self.default_password, **fields)
        self.users.append(user)
        self.persist()
        logger.info("user_created", user_id=user.id, role=user.role.value)

        if self.audit:
            self.audit.record(
                AuditAction.create,
                AuditEntityType.user,
                user.id,
                user.name,
                details=f"Added user {user.name} ({user.email})",
            )
        if self.notifier:
            self.notifier.user_created(user.name, user.id)
        return StoreResult.success(user)

    def update_user(self, user_id: str, patch: UserUpdate) -> StoreResult[User]:
        idx = find_index(self.users, user_id)
        if idx is None:
            logger.warning("update_user_not_found", user_id=user_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"User {user_id} not found")

        changes = patch.model_dump(exclude_unset=True)
        if changes.get("email") and self._email_taken(changes["email"], exclude_id=user_id):
            logger.error("update_user_duplicate_email", user_id=user_id, email=changes["email"])
            return StoreResult.failure(ErrorCode.DUPLICATE_EMAIL, "Email already exists")

        before = self.users[idx]
        if "password" in changes and (changes["password"] == "" or changes["password"] is None):
            # empty string means "keep the current password"
            changes.pop("password")
        for required in ("name", "email", "role", "skills", "status"):
            if required in changes and changes[required] is None:
                changes.pop(required)

        updated = User.model_validate({**before.model_dump(), **changes})
        self.users[idx] = updated
        if self.current_user and self.current_user.id == user_id:
            self.current_user = updated
        self.persist()
        logger.info("user_updated", user_id=user_id, fields=sorted(changes.keys()))

        before_json = before.model_dump(mode="json")
        after_json = updated.model_dump(mode="json")
        if self.audit:
            self.audit.record(
                AuditAction.update,
                AuditEntityType.user,
                updated.id,
                updated.name,
                details=f"Updated user {updated.name}",
                changes=compute_diff(before_json, after_json, fields=list(AUDITED_FIELDS)),
            )
        if any(before_json.get(f) != after_json.get(f) for f in SNAPSHOT_FIELDS):
            self.events.publish(UserProfileChanged(user=updated))
        return StoreResult.success(updated)

    def delete_user(self, user_id: str) -> StoreResult[User]:
        if self.current_user and self.current_user.id == user_id:
            logger.warning("delete_current_user_refused", user_id=user_id)
            return StoreResult.failure(ErrorCode.FORBIDDEN, "Cannot delete the logged-in user")
        idx = find_index(self.users, user_id)
        if idx is None:
            logger.warning("delete_user_not_found", user_id=user_id)
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"User {user_id} not found")

        removed = self.users.pop(idx)
        self.persist()
        logger.info("user_deleted", user_id=user_id)
        if self.audit:
            self.audit.record(
                AuditAction.delete,
                AuditEntityType.user,
                removed.id,
                removed.name,
                details=f"Deleted user {removed.name} ({removed.email})",
            )
        return StoreResult.success(removed)

    def reorder_users(self, user_id_order: Iterable[str]) -> None:
        self.users = reorder_by_ids(self.users, user_id_order)
        self.persist()

    def reset_users(self) -> None:
        self.users = seed_users()
        self.current_user = None
        self.is_authenticated = False
        self.persist()
        logger.info("users_reset")

    # -- reads ---------------------------------------------------------------------------

    def get_user_by_id(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        return next((u for u in self.users if u.id == user_id), None)

    def get_users_by_ids(self, user_ids: Iterable[str]) -> List[User]:
        """Resolve ids in the given order; unknown ids and repeats are skipped."""
        resolved, seen = [], set()
        for uid in user_ids:
            if uid in seen:
                continue
            user = self.get_user_by_id(uid)
            if user is not None:
                resolved.append(user)
                seen.add(uid)
        return resolved

    def list_users(self, role: Optional[Role] = None, department: Optional[str] = None) -> List[User]:
        users = self.users
        if role is not None:
            users = [u for u in users if u.role == Role(role)]
        if department is not None:
            users = [u for u in users if u.department == department]
        return list(users)
