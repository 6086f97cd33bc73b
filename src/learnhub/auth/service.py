from dataclasses import dataclass
from typing import Dict

from fastapi import HTTPException

from learnhub.auth.errors import InvalidCredentials
from learnhub.auth.jwt import create_access_token
from learnhub.auth.models import TokenPair, TokenResponse
from learnhub.auth.passwords import burn_verification, hash_password, verify_password
from learnhub.auth.tokens import issue_token_pair
from learnhub.config import PASSWORD_RESET_MESSAGE
from learnhub.db.refresh_token import (
    RotatedRefreshToken,
    revoke_refresh_token,
    rotate_refresh_token,
)
from learnhub.db.user import (
    get_user_by_email,
    get_user_by_id,
    insert_user,
    public_user,
    touch_last_active,
)
from learnhub.models import SignupRequest
from learnhub.utils.logging import logger


@dataclass(frozen=True)
class AuthResult:
    user: Dict
    tokens: TokenPair


@dataclass(frozen=True)
class RefreshResult:
    user: Dict
    access: TokenResponse
    refresh: RotatedRefreshToken


async def verify_credentials(email: str, password: str) -> Dict:
    """Return the user row for a correct email/password pair.

    Unknown email and wrong password raise the same InvalidCredentials error,
    and both paths run one argon2 verification.
    """
    user = await get_user_by_email(email)
    if not user:
        burn_verification(password)
        logger.info("Login failed: unknown email")
        raise InvalidCredentials(reason="unknown email")

    if not verify_password(password, user["password_hash"]):
        logger.info(f"Login failed: wrong password for user {user['id']}")
        raise InvalidCredentials(reason="wrong password")

    return user


async def signup(data: SignupRequest) -> AuthResult:
    user = await insert_user(
        email=data.email,
        name=data.name,
        role=data.role.value,
        password_hash=hash_password(data.password),
    )
    logger.info(f"Created {user['role']} account {user['id']}")

    tokens = await issue_token_pair(user)
    return AuthResult(user=public_user(user), tokens=tokens)


async def login(email: str, password: str) -> AuthResult:
    user = await verify_credentials(email, password)
    tokens = await issue_token_pair(user)
    await touch_last_active(user["id"])
    return AuthResult(user=public_user(user), tokens=tokens)


async def refresh_tokens(refresh_token: str) -> RefreshResult:
    """Rotate the refresh token and mint a matching access token."""
    rotated = await rotate_refresh_token(refresh_token)
    access = create_access_token(rotated.user["id"], rotated.user["role"])
    logger.info(f"Rotated refresh token for user {rotated.user['id']}")
    return RefreshResult(user=public_user(rotated.user), access=access, refresh=rotated)


async def logout(refresh_token: str | None):
    if not refresh_token:
        return

    if await revoke_refresh_token(refresh_token):
        logger.info("Refresh token revoked on logout")


async def get_current_user(user_id: str) -> Dict:
    user = await get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return public_user(user)


async def request_password_reset(email: str) -> str:
    """Acknowledge a reset request without revealing whether the email exists."""
    user = await get_user_by_email(email)
    if user:
        # Delivery of the reset link is handled by the notification service
        logger.info(f"Password reset requested for user {user['id']}")
    return PASSWORD_RESET_MESSAGE
