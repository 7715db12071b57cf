from fastapi import Depends, HTTPException, Request, status

from ..hub import Hub
from ..schemas.users import Role, User
from ..services.results import ErrorCode, StoreResult


# plain 422: the starlette constant for it was renamed between releases
ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_REFERENCE: 422,
    ErrorCode.VALIDATION: 422,
    ErrorCode.ILLEGAL_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
}


def get_hub(request: Request) -> Hub:
    return request.app.state.hub


def get_current_user(hub: Hub = Depends(get_hub)) -> User:
    user = hub.users.current_user
    if user is None or not hub.users.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_roles(*roles: Role):
    allowed = set(roles)

    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return checker


require_admin = require_roles(Role.admin)
require_staff = require_roles(Role.admin, Role.manager, Role.lead_technician)


def unwrap_or_raise(result: StoreResult):
    """Value of a successful result, or the HTTP error matching its code."""
    if result.ok:
        return result.value
    code = ERROR_STATUS.get(result.error.code, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail={"code": result.error.code.value, "message": result.error.message})
