from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auth.router import to_public
from ..auth.security import get_current_user, get_hub, require_admin, unwrap_or_raise
from ..hub import Hub
from ..schemas.users import Role, User, UserCreate, UserPublic, UserUpdate


router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserPublic])
def list_users(
    role: Optional[Role] = None,
    department: Optional[str] = None,
    hub: Hub = Depends(get_hub),
    _=Depends(get_current_user),
):
    return [to_public(u) for u in hub.users.list_users(role=role, department=department)]


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: str, hub: Hub = Depends(get_hub), _=Depends(get_current_user)):
    user = hub.users.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return to_public(user)


@router.post("", response_model=UserPublic, status_code=201)
def create_user(body: UserCreate, hub: Hub = Depends(get_hub), _=Depends(require_admin)):
    return to_public(unwrap_or_raise(hub.users.create_user(body)))


@router.patch("/{user_id}", response_model=UserPublic)
def update_user(user_id: str, body: UserUpdate, hub: Hub = Depends(get_hub), me: User = Depends(get_current_user)):
    # users may edit their own profile but not their own role
    if me.role != Role.admin:
        if me.id != user_id:
            raise HTTPException(status_code=403, detail="Forbidden")
        if "role" in body.model_fields_set and body.role != me.role:
            raise HTTPException(status_code=403, detail="Cannot change own role")
    return to_public(unwrap_or_raise(hub.users.update_user(user_id, body)))


@router.delete("/{user_id}")
def delete_user(user_id: str, hub: Hub = Depends(get_hub), _=Depends(require_admin)):
    unwrap_or_raise(hub.users.delete_user(user_id))
    return {"status": "ok"}


@router.post("/reorder")
def reorder_users(ids: List[str] = Body(..., embed=True), hub: Hub = Depends(get_hub), _=Depends(require_admin)):
    hub.users.reorder_users(ids)
    return {"ids": [u.id for u in hub.users.users]}


@router.post("/reset")
def reset_users(hub: Hub = Depends(get_hub), _=Depends(require_admin)):
    hub.users.reset_users()
    return {"status": "ok", "count": len(hub.users.users)}
