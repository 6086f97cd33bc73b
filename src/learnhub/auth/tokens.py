from typing import Dict

from learnhub.auth.jwt import create_access_token
from learnhub.auth.models import TokenPair
from learnhub.db.refresh_token import (
    count_user_refresh_tokens,
    generate_refresh_token,
    refresh_token_expiry,
    store_refresh_token,
)
from learnhub.utils.logging import logger


async def issue_token_pair(user: Dict) -> TokenPair:
    """Mint an access token and a persisted refresh token for a verified identity."""
    access = create_access_token(user["id"], user["role"])

    refresh_token = generate_refresh_token()
    refresh_expires_at = refresh_token_expiry()
    await store_refresh_token(refresh_token, user["id"], refresh_expires_at)

    active_sessions = await count_user_refresh_tokens(user["id"])
    logger.info(
        f"Issued token pair for user {user['id']} ({active_sessions} active refresh tokens)"
    )

    return TokenPair(
        access_token=access.access_token,
        refresh_token=refresh_token,
        expires_in=access.expires_in,
        refresh_expires_at=refresh_expires_at,
    )
