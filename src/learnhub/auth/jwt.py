from datetime import datetime, timezone, timedelta

import jwt

from learnhub.auth.constants import (
    ACCESS_TOKEN_TYPE,
    JWT_ALGORITHM,
    MIN_JWT_SECRET_LENGTH,
)
from learnhub.auth.errors import InvalidToken, TokenExpired
from learnhub.auth.models import Role, TokenResponse
from learnhub.settings import get_settings


def ensure_signing_key() -> None:
    """Fail fast when the signing key is unusable.

    Called once from the application lifespan so a misconfigured process never
    starts serving requests.
    """
    secret = get_settings().jwt_secret
    if not secret:
        raise RuntimeError("JWT secret not configured (set JWT_SECRET)")
    if len(secret) < MIN_JWT_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT secret must be at least {MIN_JWT_SECRET_LENGTH} characters"
        )


def _get_secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        raise RuntimeError("JWT secret not configured (set JWT_SECRET)")
    return secret


def create_access_token(user_id: str, role: str) -> TokenResponse:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=settings.access_token_expire_minutes)

    payload = {
        "sub": str(user_id),
        "role": Role(role).value,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expires,
    }

    token = jwt.encode(payload, _get_secret(), algorithm=JWT_ALGORITHM)

    return TokenResponse(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT access token.

    Returns the payload dict on success.
    Raises TokenExpired when the exp claim has passed and InvalidToken for
    every other defect (signature, structure, token type, missing claims).
    """
    try:
        payload = jwt.decode(
            token,
            _get_secret(),
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired(reason="access token expired")
    except jwt.InvalidTokenError as e:
        raise InvalidToken(reason=f"access token rejected: {e}")

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidToken(reason="wrong token type")

    if payload.get("role") not in {role.value for role in Role}:
        raise InvalidToken(reason="missing or unknown role claim")

    return payload
