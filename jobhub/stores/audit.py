from typing import Any, Callable, Dict, List, Optional

import structlog

from ..schemas.audit import Actor, AuditAction, AuditEntityType, AuditLog, FieldChange
from ..schemas.users import User
from ..services.audit import build_audit_log
from .base import PersistedStore, dump_models


logger = structlog.get_logger(__name__)


class AuditLogStore(PersistedStore):
    name = "audit-log-storage"
    version = 1

    def __init__(self, storage, integrity_secret: Optional[str] = None, **kwargs):
        super().__init__(storage, **kwargs)
        self.audit_logs: List[AuditLog] = []
        self.integrity_secret = integrity_secret
        # set by the hub; returns the session user or None
        self.actor_provider: Callable[[], Optional[User]] = lambda: None

    def dump_state(self) -> Dict[str, Any]:
        return {"audit_logs": dump_models(self.audit_logs)}

    def load_state(self, state: Dict[str, Any]) -> None:
        self.audit_logs = [AuditLog.model_validate(x) for x in state.get("audit_logs") or []]

    def add_audit_log(self, log: AuditLog) -> AuditLog:
        self.audit_logs.insert(0, log)
        self.persist()
        return log

    def record(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: str,
        entity_name: str,
        details: Optional[str] = None,
        changes: Optional[List[FieldChange]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Append an entry performed by the session user. Nothing is recorded without one."""
        actor = self.actor_provider()
        if actor is None:
            logger.debug("audit_skipped_no_actor", action=str(action), entity_type=str(entity_type), entity_id=entity_id)
            return None
        log = build_audit_log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            actor=Actor(id=actor.id, name=actor.name, role=actor.role.value),
            details=details,
            changes=changes,
            metadata=metadata,
            integrity_secret=self.integrity_secret,
        )
        return self.add_audit_log(log)

    def get_audit_logs(self) -> List[AuditLog]:
        return list(self.audit_logs)

    def get_audit_logs_by_entity(self, entity_type: AuditEntityType, entity_id: Optional[str] = None) -> List[AuditLog]:
        entity_type = AuditEntityType(entity_type)
        return [
            log for log in self.audit_logs
            if log.entity_type == entity_type and (entity_id is None or log.entity_id == entity_id)
        ]

    def get_audit_logs_by_user(self, user_id: str) -> List[AuditLog]:
        return [log for log in self.audit_logs if log.performed_by.id == user_id]

    def clear_audit_logs(self) -> None:
        self.audit_logs = []
        self.persist()
