"""
Global search across jobs, users, inventory and reports.
Jobs are restricted to what the searching user may see.
"""
from typing import Any, Dict, List, Optional

from ..schemas.users import User
from .visibility import visible_jobs


SECTIONS = (
    ("jobs", "Jobs"),
    ("users", "Users"),
    ("inventory", "Inventory"),
    ("reports", "Reports"),
)


def _matches(needle: str, *values: Optional[str]) -> bool:
    return any(needle in (v or "").lower() for v in values)


def search(hub, query: str, user: Optional[User], limit: int = 10) -> List[Dict[str, Any]]:
    q = (query or "").strip().lower()
    results: Dict[str, List[Dict[str, Any]]] = {key: [] for key, _ in SECTIONS}
    if not q:
        return [{"key": key, "label": label, "items": []} for key, label in SECTIONS]

    for job in visible_jobs(hub.jobs.jobs, user):
        if _matches(q, job.title):
            results["jobs"].append(
                {
                    "type": "job",
                    "id": job.id,
                    "title": job.title,
                    "subtitle": job.department,
                    "href": f"/jobs/{job.id}",
                }
            )

    for u in hub.users.users:
        if _matches(q, u.name, u.role.value):
            results["users"].append(
                {
                    "type": "user",
                    "id": u.id,
                    "title": u.name,
                    "subtitle": u.role.value,
                    "href": f"/users/{u.id}",
                }
            )

    for item in hub.inventory.items:
        if _matches(q, item.name):
            results["inventory"].append(
                {
                    "type": "inventory",
                    "id": item.id,
                    "title": item.name,
                    "subtitle": f"{item.quantity} in {item.location}" if item.location else str(item.quantity),
                    "href": f"/inventory/{item.id}",
                }
            )

    for report in hub.reports.reports:
        if _matches(q, report.title):
            results["reports"].append(
                {
                    "type": "report",
                    "id": report.id,
                    "title": report.title,
                    "subtitle": report.status.value,
                    "href": f"/reports/{report.id}",
                }
            )

    return [{"key": key, "label": label, "items": results[key][:limit]} for key, label in SECTIONS]
