from fastapi import APIRouter, Depends

from ..hub import Hub
from ..logging import structlog
from ..schemas.users import LoginRequest, User, UserPublic
from .security import get_current_user, get_hub, unwrap_or_raise


router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger(__name__)


def to_public(user: User) -> UserPublic:
    return UserPublic.model_validate(user.model_dump(exclude={"password"}))


@router.post("/login", response_model=UserPublic)
def login(body: LoginRequest, hub: Hub = Depends(get_hub)):
    user = unwrap_or_raise(hub.users.login(body.email, body.password))
    return to_public(user)


@router.post("/logout")
def logout(hub: Hub = Depends(get_hub)):
    hub.users.logout()
    return {"status": "ok"}


@router.post("/switch/{user_id}", response_model=UserPublic)
def switch_user(user_id: str, hub: Hub = Depends(get_hub)):
    """Impersonate any existing user. Intended for demos."""
    user = unwrap_or_raise(hub.users.switch_user_by_id(user_id))
    logger.info("session_switched", user_id=user.id)
    return to_public(user)


@router.get("/me", response_model=UserPublic)
def me(user: User = Depends(get_current_user)):
    return to_public(user)
