from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from ..auth.security import get_current_user, get_hub
from ..hub import Hub
from ..schemas.users import User
from ..services.calendar import job_events


router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/me")
def calendar_me(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    hub: Hub = Depends(get_hub),
    user: User = Depends(get_current_user),
):
    return job_events(hub.jobs.jobs, user, start=start, end=end)
