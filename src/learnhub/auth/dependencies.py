from typing import Optional

from fastapi import Header, Request

from learnhub.auth.errors import InvalidToken, TokenExpired, Unauthenticated
from learnhub.auth.jwt import decode_access_token
from learnhub.auth.models import AuthenticatedUser
from learnhub.utils.logging import logger


def _extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated(reason="missing or malformed Authorization header")

    token = authorization[7:].strip()  # Strip "Bearer "
    if not token:
        raise Unauthenticated(reason="empty bearer token")
    return token


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> AuthenticatedUser:
    """Auth gate for protected routes.

    Verifies the bearer access token and attaches the decoded identity to
    ``request.state.user`` for downstream handlers. No database lookup.
    """
    try:
        token = _extract_bearer_token(authorization)
        payload = decode_access_token(token)
    except TokenExpired:
        logger.info(f"Auth gate: expired token on {request.method} {request.url.path}")
        raise
    except InvalidToken as e:
        logger.warning(
            f"Auth gate: invalid token on {request.method} {request.url.path}: {e.reason}"
        )
        raise
    except Unauthenticated as e:
        logger.info(f"Auth gate: {e.reason} on {request.method} {request.url.path}")
        raise

    user = AuthenticatedUser(id=payload["sub"], role=payload["role"])
    request.state.user = user
    return user

