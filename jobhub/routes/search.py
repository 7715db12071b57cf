from fastapi import APIRouter, Depends, Query

from ..auth.security import get_current_user, get_hub
from ..hub import Hub
from ..schemas.users import User
from ..services.search import search


router = APIRouter(prefix="/search", tags=["search"])


@router.get("")
def global_search(
    q: str = Query("", min_length=0),
    limit: int = Query(10, ge=1, le=50),
    hub: Hub = Depends(get_hub),
    user: User = Depends(get_current_user),
):
    return {"sections": search(hub, q, user, limit=limit)}
