"""
Audit logging service.
Append-only audit entries with integrity hashing.
"""
import hashlib
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..schemas.audit import Actor, AuditAction, AuditEntityType, AuditLog, FieldChange


def _canonical_hash(log: AuditLog, integrity_secret: str) -> str:
    canonical_data = {
        "action": log.action.value,
        "entity_type": log.entity_type.value,
        "entity_id": str(log.entity_id),
        "entity_name": log.entity_name,
        "actor_id": log.performed_by.id,
        "actor_role": log.performed_by.role,
        "timestamp": log.timestamp.isoformat(),
        "details": log.details,
        "changes": [c.model_dump(mode="json") for c in log.changes] or None,
        "metadata": log.metadata or None,
    }

    # Remove None values and sort keys for consistency
    canonical_data = {k: v for k, v in canonical_data.items() if v is not None}
    canonical_json = json.dumps(canonical_data, sort_keys=True, default=str)

    hash_input = f"{canonical_json}:{integrity_secret}"
    return hashlib.sha256(hash_input.encode()).hexdigest()


def build_audit_log(
    action: AuditAction,
    entity_type: AuditEntityType,
    entity_id: str,
    entity_name: str,
    actor: Actor,
    details: Optional[str] = None,
    changes: Optional[List[FieldChange]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    integrity_secret: Optional[str] = None,
) -> AuditLog:
    """
    Create an audit entry.

    Args:
        action: Action performed (create|update|delete|approve|reject|assign|unassign)
        entity_type: Type of entity (job|inventory|user|report|inventory_request|completion_request)
        entity_id: Entity ID
        entity_name: Display name of the entity at the time of the action
        actor: Who performed the action
        details: Free text description
        changes: Field level before/after list
        metadata: Additional context
        integrity_secret: Secret for integrity hash (no hash when empty)

    Returns:
        AuditLog entry (not yet stored)
    """
    log = AuditLog(
        id=str(uuid.uuid4()),
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        entity_name=entity_name,
        performed_by=actor,
        timestamp=datetime.now(timezone.utc),
        details=details,
        changes=changes or [],
        metadata=metadata or {},
    )
    if integrity_secret:
        log.integrity_hash = _canonical_hash(log, integrity_secret)
    return log


def verify_integrity(log: AuditLog, integrity_secret: str) -> bool:
    if not log.integrity_hash:
        return False
    return log.integrity_hash == _canonical_hash(log, integrity_secret)


def compute_diff(before: Dict, after: Dict, fields: Optional[List[str]] = None) -> List[FieldChange]:
    """
    Compute a diff between two dictionaries.

    Args:
        before: Before state
        after: After state
        fields: Restrict the comparison to these keys

    Returns:
        FieldChange list for changed fields, sorted by field name
    """
    keys = set(fields) if fields is not None else set(before.keys()) | set(after.keys())
    diff = []
    for key in sorted(keys):
        before_val = before.get(key)
        after_val = after.get(key)
        if before_val != after_val:
            diff.append(FieldChange(field=key, old_value=before_val, new_value=after_val))
    return diff
