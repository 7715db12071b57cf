"""
Job status machine.

pending -> in_progress -> pending_approval -> completed, with cancelled and
rejected as terminal exits. A job waiting for approval can be sent back to
in_progress.
"""
from typing import Dict, FrozenSet

from ..schemas.jobs import JobStatus


TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.pending: frozenset({JobStatus.in_progress, JobStatus.cancelled, JobStatus.rejected}),
    JobStatus.in_progress: frozenset({JobStatus.pending_approval, JobStatus.cancelled}),
    JobStatus.pending_approval: frozenset({JobStatus.completed, JobStatus.in_progress, JobStatus.rejected}),
    JobStatus.completed: frozenset(),
    JobStatus.cancelled: frozenset(),
    JobStatus.rejected: frozenset(),
}

STATUS_COLORS: Dict[JobStatus, str] = {
    JobStatus.pending: "orange",
    JobStatus.in_progress: "blue",
    JobStatus.pending_approval: "purple",
    JobStatus.completed: "green",
    JobStatus.cancelled: "gray",
    JobStatus.rejected: "red",
}

STATUS_LABELS: Dict[JobStatus, str] = {
    JobStatus.pending: "Pending",
    JobStatus.in_progress: "In progress",
    JobStatus.pending_approval: "Pending approval",
    JobStatus.completed: "Completed",
    JobStatus.cancelled: "Cancelled",
    JobStatus.rejected: "Rejected",
}


def is_terminal(status: JobStatus) -> bool:
    return not TRANSITIONS[JobStatus(status)]


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Re-setting the current status is allowed and treated as a no-op."""
    current, target = JobStatus(current), JobStatus(target)
    if current == target:
        return True
    return target in TRANSITIONS[current]


def allowed_targets(current: JobStatus) -> FrozenSet[JobStatus]:
    return TRANSITIONS[JobStatus(current)]


def status_color(status: JobStatus) -> str:
    return STATUS_COLORS.get(JobStatus(status), "orange")


def status_label(status: JobStatus) -> str:
    return STATUS_LABELS.get(JobStatus(status), str(status))
