import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..schemas.audit import AuditAction, AuditEntityType
from ..schemas.inventory import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryRequest,
    RequestStatus,
    StockStatus,
)
from ..schemas.jobs import Job, UsedInventory
from ..seed_data import seed_inventory
from ..services.audit import compute_diff
from ..services.results import ErrorCode, StoreResult
from .base import PersistedStore, dump_models, find_index, reorder_by_ids
from .jobs import merge_used_inventory


logger = structlog.get_logger(__name__)

AUDITED_FIELDS = ("name", "quantity", "location", "type", "price", "reorder_point")


class InventoryStore(PersistedStore):
    """Stock items plus the material requests raised against jobs."""

    name = "inventory-storage"
    version = 1

    def __init__(self, storage, jobs=None, users=None, audit=None, notifier=None, **kwargs):
        super().__init__(storage, **kwargs)
        self.jobs = jobs
        self.users = users
        self.audit = audit
        self.notifier = notifier
        self.items: List[InventoryItem] = []
        self.requests: List[InventoryRequest] = []

    # -- persistence ---------------------------------------------------------

    def dump_state(self) -> Dict[str, Any]:
        return {"items": dump_models(self.items), "requests": dump_models(self.requests)}

    def load_state(self, state: Dict[str, Any]) -> None:
        items = []
        for raw in state.get("items") or []:
            raw = dict(raw)
            # status is derived from quantity and reorder point
            raw.pop("status", None)
            items.append(InventoryItem.model_validate(raw))
        self.items = items
        self.requests = [InventoryRequest.model_validate(x) for x in state.get("requests") or []]

    def is_empty(self) -> bool:
        return not self.items

    def seed(self) -> None:
        self.items = seed_inventory()

    # -- items ----------------------------------------------------------------

    def _audit(self, action, entity_type, entity_id, entity_name, **kwargs) -> None:
        if self.audit:
            self.audit.record(action, entity_type, entity_id, entity_name, **kwargs)

    def _notify_if_newly_low(self, before: Optional[InventoryItem], after: InventoryItem) -> None:
        if not self.notifier or after.status == StockStatus.ready:
            return
        if before is not None and before.status != StockStatus.ready:
            return
        self.notifier.inventory_low(after.name, after.quantity)

    def add_item(self, data: InventoryItemCreate) -> StoreResult[InventoryItem]:
        item = InventoryItem(id=str(uuid.uuid4()), **data.model_dump())
        self.items.append(item)
        self.persist()
        logger.info("inventory_item_added", item_id=item.id, quantity=item.quantity)
        self._audit(AuditAction.create, AuditEntityType.inventory, item.id, item.name, details=f"Added item {item.name}")
        return StoreResult.success(item)

    def update_item(self, item_id: str, patch: InventoryItemUpdate) -> StoreResult[InventoryItem]:
        idx = find_index(self.items, item_id)
        if idx is None:
            logger.warning("inventory_item_not_found", item_id=item_id, op="update")
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Item {item_id} not found")

        before = self.items[idx]
        changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None or k in ("require_from", "image_url")}
        data = before.model_dump(exclude={"status"})
        data.update(changes)
        updated = InventoryItem.model_validate(data)
        self.items[idx] = updated
        self.persist()
        logger.info("inventory_item_updated", item_id=item_id, fields=sorted(changes))

        self._audit(
            AuditAction.update,
            AuditEntityType.inventory,
            updated.id,
            updated.name,
            details=f"Updated item {updated.name}",
            changes=compute_diff(before.model_dump(mode="json"), updated.model_dump(mode="json"), fields=list(AUDITED_FIELDS)),
        )
        self._notify_if_newly_low(before, updated)
        return StoreResult.success(updated)

    def adjust_quantity(self, item_id: str, delta: int) -> StoreResult[InventoryItem]:
        idx = find_index(self.items, item_id)
        if idx is None:
            logger.warning("inventory_item_not_found", item_id=item_id, op="adjust")
            return StoreResult.failure(ErrorCode.NOT_FOUND, f"Item {item_id} not found")
        before = self.items[idx]
        quantity = before.quantity + delta
        if quantity < 0:
            logger.warning("inventory_insufficient_stock", item_id=item_id, quantity=before.quantity, delta=delta)
            return StoreResult.failure(ErrorCode.VALIDATION, f"Not enough stock for {before.name}")

        updated = before.model_copy(update={"quantity": quantity})
        self.items[idx] = updated
        self.persist()
        logger.info("inventory_quantity_adjusted", item_id=item_id, delta=delta, quantity=quantity)
        self._audit(
            AuditAction.update,
            AuditEntityType.inventory,
            updated.id,
            updated.name,
            details=f"Adjusted stock of {updated.name} by {delta}",
            changes=compute_diff({"quantity": before.quantity}, {"quantity": quantity}),
        )
        self._notify_if_newly_low(before, updated)
        return StoreResult.success(updated)

    def delete_item(self, item_id: str) -> StoreResult[Optional[InventoryItem]]:
        idx = find_index(self.items, item_id)
        if idx is None:
            return StoreResult.success(None)
        removed = self.items.pop(idx)
        self.persist()
        logger.info("inventory_item_deleted", item_id=item_id)
        self._audit(AuditAction.delete, AuditEntityType.inventory, removed.id, removed.name, details=f"Deleted item {removed.name}")
        return StoreResult.success(removed)

    def reorder_items(self, item_ids: Iterable[str]) -> None:
        self.items = reorder_by_ids(self.items, item_ids)
        self.persist()

    def get_item_by_id(self, item_id: str) -> Optional[InventoryItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def list_items(self, type=None, status: Optional[StockStatus] = None) -> List[InventoryItem]:
        items = self.items
        if type is not None:
            items = [i for i in items if i.type == type]
        if status is not None:
            items = [i for i in items if i.status == StockStatus(status)]
        return list(items)

    def low_stock_items(self) -> List[InventoryItem]:
        return [i for i in self.items if i.status != StockStatus.ready]

    # -- requests --------------------------------------------------------------

    def _find_request(self, request_id: str):
        idx = find_index(self.requests, request_id)
        if idx is None:
            logger.warning("inventory_request_not_found", request_id=request_id)
            return None, StoreResult.failure(ErrorCode.NOT_FOUND, f"Request {request_id} not found")
        if self.requests[idx].status != RequestStatus.pending:
            logger.warning("inventory_request_already_decided", request_id=request_id, status=self.requests[idx].status.value)
            return None, StoreResult.failure(ErrorCode.VALIDATION, "Request has already been decided")
        return idx, None

    def create_request(self, job_id: str, requester_id: str, items: Iterable[UsedInventory]) -> StoreResult[InventoryRequest]:
        items = list(items)
        job = self.jobs.get_job_by_id(job_id) if self.jobs else None
        if job is None:
            logger.error("inventory_request_job_not_found", job_id=job_id)
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Job {job_id} not found")
        requester = self.users.get_user_by_id(requester_id) if self.users else None
        if requester is None:
            logger.error("inventory_request_requester_not_found", requester_id=requester_id)
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"User {requester_id} not found")
        if not items:
            return StoreResult.failure(ErrorCode.VALIDATION, "At least one item is required")
        for line in items:
            if line.qty < 1:
                return StoreResult.failure(ErrorCode.VALIDATION, "Quantity must be at least 1")
            if self.get_item_by_id(line.id) is None:
                logger.error("inventory_request_item_not_found", item_id=line.id)
                return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Item {line.id} not found")

        request = InventoryRequest(
            id=str(uuid.uuid4()),
            job_id=job.id,
            requester=requester.creator_snapshot(),
            items=merge_used_inventory([], items),
        )
        self.requests.append(request)
        self.persist()
        logger.info("inventory_request_created", request_id=request.id, job_id=job.id, lines=len(request.items))
        self._audit(
            AuditAction.create,
            AuditEntityType.inventory_request,
            request.id,
            job.title,
            details=f"{requester.name} requested materials for {job.title}",
            metadata={"job_id": job.id, "items": [line.model_dump() for line in request.items]},
        )
        if self.notifier:
            self.notifier.inventory_request_created(job.title, requester.name, request.id, job.id, job.department)
        return StoreResult.success(request)

    def approve_request(self, request_id: str, approver_id: str) -> StoreResult[InventoryRequest]:
        idx, failure = self._find_request(request_id)
        if failure is not None:
            return failure
        approver = self.users.get_user_by_id(approver_id) if self.users else None
        if approver is None:
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"User {approver_id} not found")
        request = self.requests[idx]
        job = self.jobs.get_job_by_id(request.job_id)
        if job is None:
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Job {request.job_id} not found")

        # check every line first so stock is deducted all-or-nothing
        for line in request.items:
            item = self.get_item_by_id(line.id)
            if item is None:
                return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"Item {line.id} not found")
            if item.quantity < line.qty:
                logger.warning("inventory_request_insufficient_stock", request_id=request_id, item_id=item.id)
                return StoreResult.failure(ErrorCode.VALIDATION, f"Not enough stock for {item.name}")

        before = {item.id: item for item in self.items}
        for line in request.items:
            i = find_index(self.items, line.id)
            self.items[i] = self.items[i].model_copy(update={"quantity": self.items[i].quantity - line.qty})

        approved = request.model_copy(
            update={
                "status": RequestStatus.approved,
                "decided_by": approver.creator_snapshot(),
                "decided_at": datetime.now(timezone.utc),
            }
        )
        self.requests[idx] = approved
        self.persist()
        self.jobs.add_used_inventory(job.id, request.items)
        logger.info("inventory_request_approved", request_id=request_id, approver_id=approver.id)

        self._audit(AuditAction.approve, AuditEntityType.inventory_request, request.id, job.title, details=f"Approved material request for {job.title}")
        if self.notifier:
            self.notifier.inventory_request_approved(job.title, approver.name, request.id, job.id, request.requester.id)
        for line in request.items:
            self._notify_if_newly_low(before[line.id], self.get_item_by_id(line.id))
        return StoreResult.success(approved)

    def reject_request(self, request_id: str, approver_id: str, reason: Optional[str] = None) -> StoreResult[InventoryRequest]:
        idx, failure = self._find_request(request_id)
        if failure is not None:
            return failure
        approver = self.users.get_user_by_id(approver_id) if self.users else None
        if approver is None:
            return StoreResult.failure(ErrorCode.INVALID_REFERENCE, f"User {approver_id} not found")

        request = self.requests[idx]
        rejected = request.model_copy(
            update={
                "status": RequestStatus.rejected,
                "reason": reason,
                "decided_by": approver.creator_snapshot(),
                "decided_at": datetime.now(timezone.utc),
            }
        )
        self.requests[idx] = rejected
        self.persist()
        logger.info("inventory_request_rejected", request_id=request_id, approver_id=approver.id)

        job = self.jobs.get_job_by_id(request.job_id) if self.jobs else None
        job_title = job.title if job else request.job_id
        self._audit(
            AuditAction.reject,
            AuditEntityType.inventory_request,
            request.id,
            job_title,
            details=f"Rejected material request for {job_title}",
            metadata={"reason": reason} if reason else None,
        )
        if self.notifier:
            self.notifier.inventory_request_rejected(job_title, approver.name, request.id, request.job_id, request.requester.id, reason)
        return StoreResult.success(rejected)

    def get_request_by_id(self, request_id: str) -> Optional[InventoryRequest]:
        return next((r for r in self.requests if r.id == request_id), None)

    def list_requests(self, job_id: Optional[str] = None, status: Optional[RequestStatus] = None) -> List[InventoryRequest]:
        requests = self.requests
        if job_id is not None:
            requests = [r for r in requests if r.job_id == job_id]
        if status is not None:
            requests = [r for r in requests if r.status == RequestStatus(status)]
        return list(requests)

    def get_request_status(self, job_id: str) -> Optional[RequestStatus]:
        """Status of the most recent request raised for the job."""
        requests = self.list_requests(job_id=job_id)
        if not requests:
            return None
        # requests are appended in creation order
        return requests[-1].status

    def jobs_using_item(self, item_id: str) -> List[Dict[str, Any]]:
        totals: Dict[str, int] = {}
        for request in self.requests:
            if request.status != RequestStatus.approved:
                continue
            for line in request.items:
                if line.id == item_id:
                    totals[request.job_id] = totals.get(request.job_id, 0) + line.qty

        usage = []
        for job_id, qty in totals.items():
            job: Optional[Job] = self.jobs.get_job_by_id(job_id) if self.jobs else None
            usage.append({"job_id": job_id, "job_title": job.title if job else None, "qty": qty})
        return usage
