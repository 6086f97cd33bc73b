from learnhub.config import (
    ROLES,
    refresh_tokens_table_name,
    users_table_name,
)
from learnhub.utils.db import execute_multiple_db_operations
from learnhub.utils.logging import logger


def _role_check() -> str:
    return ", ".join(f"'{role}'" for role in ROLES)


async def init_db():
    """Create the identity and refresh-token tables if they do not exist yet."""
    await execute_multiple_db_operations(
        [
            (
                f"""
                CREATE TABLE IF NOT EXISTS {users_table_name} (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    role TEXT NOT NULL CHECK (role IN ({_role_check()})),
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    last_active_at TEXT
                )
                """,
                (),
            ),
            (
                f"""
                CREATE TABLE IF NOT EXISTS {refresh_tokens_table_name} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    token_hash TEXT NOT NULL UNIQUE,
                    user_id TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    revoked INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES {users_table_name}(id) ON DELETE CASCADE
                )
                """,
                (),
            ),
            (
                f"CREATE INDEX IF NOT EXISTS idx_{refresh_tokens_table_name}_user_id "
                f"ON {refresh_tokens_table_name} (user_id)",
                (),
            ),
            (
                f"CREATE INDEX IF NOT EXISTS idx_{refresh_tokens_table_name}_expires_at "
                f"ON {refresh_tokens_table_name} (expires_at)",
                (),
            ),
        ]
    )
    logger.info("Database tables ready")
