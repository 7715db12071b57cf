from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..schemas.jobs import Job
from ..schemas.users import User
from .job_status import status_color
from .visibility import visible_jobs


DEFAULT_DURATION = timedelta(hours=2)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def job_event(job: Job) -> Dict[str, Any]:
    start = _aware(job.start_date or job.created_at)
    end = _aware(job.end_date) if job.end_date else start + DEFAULT_DURATION
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "start": start,
        "end": end,
        "color": status_color(job.status),
        "category": job.department or "Job",
        "attendees": [u.name for u in job.assigned_employees],
        "tags": [job.status.value],
        "location": job.location.name if job.location else None,
    }


def job_events(
    jobs: Iterable[Job],
    user: Optional[User],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Calendar events for the jobs `user` can see, optionally limited to those overlapping [start, end)."""
    events = [job_event(job) for job in visible_jobs(jobs, user)]
    if start is not None:
        start = _aware(start)
        events = [e for e in events if e["end"] > start]
    if end is not None:
        end = _aware(end)
        events = [e for e in events if e["start"] < end]
    return sorted(events, key=lambda e: e["start"])
