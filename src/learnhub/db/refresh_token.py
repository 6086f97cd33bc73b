"""
Refresh token registry.

Refresh tokens are opaque random strings handed to the client in an
http-only cookie. Only their SHA-256 digest is stored, so a leaked database
does not expose usable tokens. Each successful rotation deletes the presented
record and inserts its replacement inside one write transaction.
"""
import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from learnhub.auth.constants import REFRESH_TOKEN_BYTES
from learnhub.auth.errors import InvalidOrExpiredRefreshToken
from learnhub.config import refresh_tokens_table_name, users_table_name
from learnhub.db.user import USER_FIELDS, convert_user_db_to_dict
from learnhub.settings import get_settings
from learnhub.utils.dates import from_db_timestamp, to_db_timestamp, utc_now
from learnhub.utils.db import execute_db_operation, get_new_db_connection
from learnhub.utils.logging import logger

_owner_columns = ", ".join(f"u.{field}" for field in USER_FIELDS)


@dataclass(frozen=True)
class RotatedRefreshToken:
    token: str
    expires_at: datetime
    user: Dict


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def refresh_token_expiry(now: Optional[datetime] = None) -> datetime:
    now = now or utc_now()
    return now + timedelta(days=get_settings().refresh_token_expire_days)


async def store_refresh_token(token: str, user_id: str, expires_at: datetime):
    await execute_db_operation(
        f"""
        INSERT INTO {refresh_tokens_table_name} (token_hash, user_id, expires_at, revoked, created_at)
        VALUES (?, ?, ?, 0, ?)
        """,
        (
            hash_refresh_token(token),
            user_id,
            to_db_timestamp(expires_at),
            to_db_timestamp(utc_now()),
        ),
    )


async def rotate_refresh_token(old_token: str) -> RotatedRefreshToken:
    """Consume ``old_token`` and issue its replacement for the same owner.

    Raises InvalidOrExpiredRefreshToken when the token is unknown, revoked,
    expired or was already rotated away. Of two concurrent rotations of the
    same token exactly one succeeds: the write lock is taken up front and the
    delete must remove exactly one live row.
    """
    old_hash = hash_refresh_token(old_token)
    now = utc_now()

    async with get_new_db_connection() as conn:
        await conn.execute("BEGIN IMMEDIATE")
        cursor = await conn.cursor()

        await cursor.execute(
            f"""
            SELECT rt.id, rt.expires_at, rt.revoked, {_owner_columns}
            FROM {refresh_tokens_table_name} rt
            JOIN {users_table_name} u ON u.id = rt.user_id
            WHERE rt.token_hash = ?
            """,
            (old_hash,),
        )
        row = await cursor.fetchone()

        if not row:
            logger.warning("Refresh rejected: token unknown or already rotated")
            raise InvalidOrExpiredRefreshToken(reason="unknown or replayed refresh token")

        record_id, expires_at, revoked = row[0], from_db_timestamp(row[1]), bool(row[2])
        user = convert_user_db_to_dict(row[3:])

        if revoked:
            logger.warning(f"Refresh rejected: revoked token for user {user['id']}")
            raise InvalidOrExpiredRefreshToken(reason="revoked refresh token")

        if expires_at <= now:
            logger.info(f"Refresh rejected: expired token for user {user['id']}")
            raise InvalidOrExpiredRefreshToken(reason="expired refresh token")

        await cursor.execute(
            f"DELETE FROM {refresh_tokens_table_name} WHERE id = ? AND revoked = 0",
            (record_id,),
        )
        if cursor.rowcount != 1:
            logger.warning(f"Refresh rejected: concurrent rotation for user {user['id']}")
            raise InvalidOrExpiredRefreshToken(reason="concurrent rotation lost")

        new_token = generate_refresh_token()
        new_expires_at = refresh_token_expiry(now)
        await cursor.execute(
            f"""
            INSERT INTO {refresh_tokens_table_name} (token_hash, user_id, expires_at, revoked, created_at)
            VALUES (?, ?, ?, 0, ?)
            """,
            (
                hash_refresh_token(new_token),
                user["id"],
                to_db_timestamp(new_expires_at),
                to_db_timestamp(now),
            ),
        )
        await conn.commit()

    return RotatedRefreshToken(token=new_token, expires_at=new_expires_at, user=user)


async def revoke_refresh_token(token: str) -> bool:
    """Delete the record for ``token``. Revoking an unknown token is not an error.

    Returns True if a record was removed.
    """
    deleted = await execute_db_operation(
        f"DELETE FROM {refresh_tokens_table_name} WHERE token_hash = ?",
        (hash_refresh_token(token),),
    )
    return deleted > 0


async def delete_expired_refresh_tokens(now: Optional[datetime] = None) -> int:
    now = now or utc_now()
    return await execute_db_operation(
        f"DELETE FROM {refresh_tokens_table_name} WHERE expires_at <= ? OR revoked = 1",
        (to_db_timestamp(now),),
    )


async def count_user_refresh_tokens(user_id: str) -> int:
    row = await execute_db_operation(
        f"SELECT COUNT(*) FROM {refresh_tokens_table_name} WHERE user_id = ?",
        (user_id,),
        fetch_one=True,
    )
    return row[0]
