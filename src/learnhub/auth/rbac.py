from typing import Callable

from fastapi import Depends

from learnhub.auth.dependencies import get_current_user
from learnhub.auth.errors import Forbidden
from learnhub.auth.models import AuthenticatedUser, Role


def require_role(*allowed_roles: Role) -> Callable:
    """FastAPI dependency factory: the authenticated caller's role must be one
    of ``allowed_roles``. Roles are flat; there is no hierarchy between them.

    Usage:
        @router.get("/trainer/home")
        async def trainer_home(
            current_user: AuthenticatedUser = Depends(require_role(Role.TRAINER)),
        ):
    """
    if not allowed_roles:
        raise ValueError("require_role needs at least one role")

    allowed = frozenset(Role(role) for role in allowed_roles)

    async def _check(
        current_user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if current_user.role not in allowed:
            raise Forbidden(
                reason=f"role {current_user.role.value} not in {sorted(r.value for r in allowed)}"
            )
        return current_user

    return _check
