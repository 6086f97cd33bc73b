import sqlite3
import uuid
from typing import Dict, Optional

from learnhub.auth.errors import EmailAlreadyRegistered
from learnhub.config import users_table_name
from learnhub.utils.dates import to_db_timestamp, utc_now
from learnhub.utils.db import execute_db_operation, get_new_db_connection

USER_FIELDS = (
    "id",
    "email",
    "name",
    "role",
    "password_hash",
    "created_at",
    "updated_at",
    "last_active_at",
)
USER_COLUMNS = ", ".join(USER_FIELDS)


def convert_user_db_to_dict(user) -> Optional[Dict]:
    if not user:
        return None

    return {
        "id": user[0],
        "email": user[1],
        "name": user[2],
        "role": user[3],
        "password_hash": user[4],
        "created_at": user[5],
        "updated_at": user[6],
        "last_active_at": user[7],
    }


def public_user(user: Dict) -> Dict:
    """Strip the secret hash before a user row leaves the service."""
    return {key: value for key, value in user.items() if key != "password_hash"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_id(user_id: str) -> Optional[Dict]:
    user = await execute_db_operation(
        f"SELECT {USER_COLUMNS} FROM {users_table_name} WHERE id = ?",
        (user_id,),
        fetch_one=True,
    )
    return convert_user_db_to_dict(user)


async def get_user_by_email(email: str) -> Optional[Dict]:
    user = await execute_db_operation(
        f"SELECT {USER_COLUMNS} FROM {users_table_name} WHERE email = ?",
        (normalize_email(email),),
        fetch_one=True,
    )
    return convert_user_db_to_dict(user)


async def insert_user(email: str, name: str, role: str, password_hash: str) -> Dict:
    """Create a new identity. Raises EmailAlreadyRegistered on a duplicate email."""
    user_id = uuid.uuid4().hex
    now = to_db_timestamp(utc_now())

    async with get_new_db_connection() as conn:
        cursor = await conn.cursor()
        try:
            await cursor.execute(
                f"""
                INSERT INTO {users_table_name}
                    (id, email, name, role, password_hash, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, normalize_email(email), name, role, password_hash, now, now),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE" not in str(e):
                raise
            raise EmailAlreadyRegistered(reason=f"duplicate email on signup: {e}")
        await conn.commit()

        await cursor.execute(
            f"SELECT {USER_COLUMNS} FROM {users_table_name} WHERE id = ?",
            (user_id,),
        )
        return convert_user_db_to_dict(await cursor.fetchone())


async def touch_last_active(user_id: str):
    now = to_db_timestamp(utc_now())
    await execute_db_operation(
        f"UPDATE {users_table_name} SET last_active_at = ? WHERE id = ?",
        (now, user_id),
    )
