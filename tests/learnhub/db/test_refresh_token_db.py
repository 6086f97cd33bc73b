import asyncio
import pytest
from datetime import timedelta

from learnhub.auth.errors import InvalidOrExpiredRefreshToken
from learnhub.config import refresh_tokens_table_name
from learnhub.db.refresh_token import (
    RotatedRefreshToken,
    count_user_refresh_tokens,
    delete_expired_refresh_tokens,
    generate_refresh_token,
    hash_refresh_token,
    refresh_token_expiry,
    revoke_refresh_token,
    rotate_refresh_token,
    store_refresh_token,
)
from learnhub.db.user import insert_user
from learnhub.utils.dates import utc_now
from learnhub.utils.db import execute_db_operation


async def _create_user(email: str = "grace@example.com", role: str = "learner") -> dict:
    return await insert_user(
        email=email, name="Grace Hopper", role=role, password_hash="x"
    )


async def _issue(user: dict, expires_at=None) -> str:
    token = generate_refresh_token()
    await store_refresh_token(token, user["id"], expires_at or refresh_token_expiry())
    return token


class TestTokenHelpers:
    def test_tokens_are_random_and_long(self):
        first, second = generate_refresh_token(), generate_refresh_token()
        assert first != second
        assert len(first) >= 64

    def test_hash_is_stable_sha256(self):
        assert hash_refresh_token("abc") == hash_refresh_token("abc")
        assert len(hash_refresh_token("abc")) == 64
        assert hash_refresh_token("abc") != "abc"

    def test_expiry_follows_settings(self, test_settings):
        now = utc_now()
        assert refresh_token_expiry(now) == now + timedelta(days=7)

        test_settings.refresh_token_expire_days = 1
        assert refresh_token_expiry(now) == now + timedelta(days=1)


@pytest.mark.asyncio
class TestStore:
    async def test_only_the_hash_is_persisted(self, db):
        user = await _create_user()
        token = await _issue(user)

        rows = await execute_db_operation(
            f"SELECT token_hash FROM {refresh_tokens_table_name}", fetch_all=True
        )
        assert rows == [(hash_refresh_token(token),)]


@pytest.mark.asyncio
class TestRotate:
    async def test_rotation_returns_new_token_for_same_owner(self, db):
        user = await _create_user(role="operations")
        token = await _issue(user)

        rotated = await rotate_refresh_token(token)

        assert isinstance(rotated, RotatedRefreshToken)
        assert rotated.token != token
        assert rotated.user["id"] == user["id"]
        assert rotated.user["role"] == "operations"
        assert rotated.expires_at > utc_now()
        assert await count_user_refresh_tokens(user["id"]) == 1

    async def test_rotated_token_cannot_be_used_again(self, db):
        user = await _create_user()
        token = await _issue(user)

        rotated = await rotate_refresh_token(token)

        with pytest.raises(InvalidOrExpiredRefreshToken) as exc_info:
            await rotate_refresh_token(token)
        assert exc_info.value.status_code == 401

        # The successor still works
        await rotate_refresh_token(rotated.token)

    async def test_unknown_token_is_rejected(self, db):
        with pytest.raises(InvalidOrExpiredRefreshToken):
            await rotate_refresh_token("never-issued")

    async def test_expired_token_is_rejected(self, db):
        user = await _create_user()
        token = await _issue(user, expires_at=utc_now() - timedelta(seconds=1))

        with pytest.raises(InvalidOrExpiredRefreshToken):
            await rotate_refresh_token(token)
        # A failed rotation changes nothing
        assert await count_user_refresh_tokens(user["id"]) == 1

    async def test_revoked_flag_is_rejected(self, db):
        user = await _create_user()
        token = await _issue(user)
        await execute_db_operation(
            f"UPDATE {refresh_tokens_table_name} SET revoked = 1 WHERE token_hash = ?",
            (hash_refresh_token(token),),
        )

        with pytest.raises(InvalidOrExpiredRefreshToken):
            await rotate_refresh_token(token)

    async def test_concurrent_rotations_of_one_token_have_one_winner(self, db):
        user = await _create_user()
        token = await _issue(user)

        results = await asyncio.gather(
            *(rotate_refresh_token(token) for _ in range(4)), return_exceptions=True
        )

        winners = [r for r in results if isinstance(r, RotatedRefreshToken)]
        losers = [r for r in results if isinstance(r, InvalidOrExpiredRefreshToken)]
        assert len(winners) == 1
        assert len(losers) == 3
        assert await count_user_refresh_tokens(user["id"]) == 1

    async def test_other_sessions_are_untouched(self, db):
        user = await _create_user()
        laptop = await _issue(user)
        phone = await _issue(user)

        await rotate_refresh_token(laptop)

        assert await count_user_refresh_tokens(user["id"]) == 2
        await rotate_refresh_token(phone)


@pytest.mark.asyncio
class TestRevoke:
    async def test_revoke_removes_token(self, db):
        user = await _create_user()
        token = await _issue(user)

        assert await revoke_refresh_token(token) is True

        with pytest.raises(InvalidOrExpiredRefreshToken):
            await rotate_refresh_token(token)

    async def test_revoke_is_idempotent(self, db):
        user = await _create_user()
        token = await _issue(user)

        assert await revoke_refresh_token(token) is True
        assert await revoke_refresh_token(token) is False
        assert await revoke_refresh_token("never-issued") is False


@pytest.mark.asyncio
class TestPurge:
    async def test_deletes_expired_and_revoked_only(self, db):
        user = await _create_user()
        live = await _issue(user)
        await _issue(user, expires_at=utc_now() - timedelta(minutes=1))
        revoked = await _issue(user)
        await execute_db_operation(
            f"UPDATE {refresh_tokens_table_name} SET revoked = 1 WHERE token_hash = ?",
            (hash_refresh_token(revoked),),
        )

        deleted = await delete_expired_refresh_tokens()

        assert deleted == 2
        assert await count_user_refresh_tokens(user["id"]) == 1
        await rotate_refresh_token(live)

    async def test_tokens_are_removed_with_their_user(self, db):
        user = await _create_user()
        await _issue(user)

        await execute_db_operation("DELETE FROM users WHERE id = ?", (user["id"],))

        assert await count_user_refresh_tokens(user["id"]) == 0
