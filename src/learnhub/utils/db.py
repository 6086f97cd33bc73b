import os
from contextlib import asynccontextmanager
from typing import Iterable, Tuple

import aiosqlite

from learnhub.settings import settings

# Seconds a writer waits on a locked database before giving up
SQLITE_BUSY_TIMEOUT = 10.0


@asynccontextmanager
async def get_new_db_connection():
    """Open a connection to the platform database and close it afterwards.

    Any exception raised inside the block rolls back the open transaction
    before it propagates.
    """
    db_dir = os.path.dirname(settings.database_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = await aiosqlite.connect(settings.database_path, timeout=SQLITE_BUSY_TIMEOUT)
    try:
        await conn.execute("PRAGMA foreign_keys = ON")
        yield conn
    except Exception:
        await conn.rollback()
        raise
    finally:
        await conn.close()


async def execute_db_operation(
    operation: str,
    params: Tuple = (),
    fetch_one: bool = False,
    fetch_all: bool = False,
    get_last_row_id: bool = False,
):
    async with get_new_db_connection() as conn:
        cursor = await conn.cursor()
        await cursor.execute(operation, params)

        if fetch_one:
            return await cursor.fetchone()
        if fetch_all:
            return await cursor.fetchall()

        await conn.commit()

        if get_last_row_id:
            return cursor.lastrowid

        return cursor.rowcount


async def execute_multiple_db_operations(commands_and_params: Iterable[Tuple[str, Tuple]]):
    """Run several statements in one transaction."""
    async with get_new_db_connection() as conn:
        cursor = await conn.cursor()
        for command, params in commands_and_params:
            await cursor.execute(command, params)
        await conn.commit()

