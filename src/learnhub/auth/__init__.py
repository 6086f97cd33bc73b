from learnhub.auth.dependencies import get_current_user
from learnhub.auth.rbac import require_role
from learnhub.auth.models import AuthenticatedUser, Role, TokenPair, TokenResponse

__all__ = [
    "get_current_user",
    "require_role",
    "AuthenticatedUser",
    "Role",
    "TokenPair",
    "TokenResponse",
]
