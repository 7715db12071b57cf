from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth.security import get_current_user, get_hub, require_staff, unwrap_or_raise
from ..hub import Hub
from ..schemas.jobs import Attachment, Job, JobCreate, JobStatus, JobTransition, JobUpdate
from ..schemas.users import User
from ..services.job_status import allowed_targets, status_color, status_label
from ..services.visibility import can_view_job, visible_jobs


router = APIRouter(prefix="/jobs", tags=["jobs"])


def _visible_job_or_404(hub: Hub, job_id: str, user: User) -> Job:
    job = hub.jobs.get_job_by_id(job_id)
    # hidden jobs look the same as missing ones
    if job is None or not can_view_job(job, user):
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("", response_model=List[Job])
def list_jobs(status: Optional[JobStatus] = None, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    return visible_jobs(hub.jobs.list_jobs(status=status), user)


@router.get("/{job_id}", response_model=Job)
def get_job(job_id: str, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    return _visible_job_or_404(hub, job_id, user)


@router.get("/{job_id}/status-options")
def status_options(job_id: str, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    job = _visible_job_or_404(hub, job_id, user)
    return [
        {"status": s.value, "label": status_label(s), "color": status_color(s)}
        for s in sorted(allowed_targets(job.status), key=lambda s: s.value)
    ]


@router.post("", response_model=Job, status_code=201)
def create_job(body: JobCreate, hub: Hub = Depends(get_hub), user: User = Depends(require_staff)):
    if not body.creator_id:
        body = body.model_copy(update={"creator_id": user.id})
    return unwrap_or_raise(hub.jobs.create_job(body))


@router.patch("/{job_id}", response_model=Job)
def update_job(job_id: str, body: JobUpdate, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    _visible_job_or_404(hub, job_id, user)
    return unwrap_or_raise(hub.jobs.update_job(job_id, body))


@router.post("/{job_id}/transition", response_model=Job)
def transition_job(job_id: str, body: JobTransition, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    _visible_job_or_404(hub, job_id, user)
    return unwrap_or_raise(hub.jobs.transition_job(job_id, body.status, actor_id=user.id, note=body.note))


@router.delete("/{job_id}")
def delete_job(job_id: str, hub: Hub = Depends(get_hub), _=Depends(require_staff)):
    removed = unwrap_or_raise(hub.jobs.delete_job(job_id))
    return {"status": "ok", "deleted": removed is not None}


@router.put("/{job_id}/tasks/{task_id}", response_model=Job)
def set_task_completion(
    job_id: str,
    task_id: str,
    is_completed: bool = Body(..., embed=True),
    hub: Hub = Depends(get_hub),
    user: User = Depends(get_current_user),
):
    _visible_job_or_404(hub, job_id, user)
    return unwrap_or_raise(hub.jobs.set_task_completion(job_id, task_id, is_completed))


@router.post("/{job_id}/attachments", response_model=Job, status_code=201)
def add_attachment(job_id: str, body: Attachment, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    _visible_job_or_404(hub, job_id, user)
    return unwrap_or_raise(hub.jobs.add_attachment(job_id, body))


@router.delete("/{job_id}/attachments/{attachment_id}", response_model=Job)
def remove_attachment(job_id: str, attachment_id: str, hub: Hub = Depends(get_hub), user: User = Depends(get_current_user)):
    _visible_job_or_404(hub, job_id, user)
    return unwrap_or_raise(hub.jobs.remove_attachment(job_id, attachment_id))


@router.put("/{job_id}/signature", response_model=Job)
def set_signature(
    job_id: str,
    signature: Optional[str] = Body(None, embed=True),
    hub: Hub = Depends(get_hub),
    user: User = Depends(get_current_user),
):
    _visible_job_or_404(hub, job_id, user)
    return unwrap_or_raise(hub.jobs.set_signature(job_id, signature))
