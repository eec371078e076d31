"""
Postgres pool for Playbooq and the two ways to borrow a connection from it.

Row-level security policies read current_setting('app.user_id'). A
connection from user_conn() carries the caller's identity-provider id there;
one from system_conn() carries an empty string, which the policies treat as
unscoped. Only the Gateway borrows connections.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

from playbooq import config

pool: asyncpg.Pool | None = None

# (type name, encoder, decoder) registered on every new connection
_CODECS = (
    ("uuid", str, UUID),
    ("json", json.dumps, json.loads),
    ("jsonb", json.dumps, json.loads),
)


async def init_pool() -> None:
    """Create the pool. Runs once from the app lifespan."""
    global pool
    pool = await asyncpg.create_pool(
        dsn=config.settings.DATABASE_URL,
        min_size=config.settings.DB_POOL_MIN_SIZE,
        max_size=config.settings.DB_POOL_MAX_SIZE,
        command_timeout=config.settings.DB_COMMAND_TIMEOUT_SECONDS,
        init=_register_codecs,
    )


async def close_pool() -> None:
    global pool
    if pool is not None:
        await pool.close()
        pool = None


async def _register_codecs(conn: asyncpg.Connection) -> None:
    for type_name, encoder, decoder in _CODECS:
        await conn.set_type_codec(type_name, encoder=encoder, decoder=decoder, schema="pg_catalog")


@asynccontextmanager
async def _scoped(app_user_id: str) -> AsyncIterator[asyncpg.Connection]:
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            # is_local=true: the setting ends with the transaction
            await conn.execute("SELECT set_config('app.user_id', $1, true)", app_user_id)
            yield conn


def user_conn(user_id: str):
    """
    A transaction-wrapped connection that RLS scopes to one user.

    Usage:
        async with user_conn(user.id) as conn:
            rows = await conn.fetch("SELECT * FROM playbook_favorites")

    Args:
        user_id: Identity-provider user id (opaque text, not a UUID)
    """
    return _scoped(str(user_id))


def system_conn():
    """
    A transaction-wrapped connection with no user scope.

    For reads of public data (marketplace listing, diagnostics) and for
    work spanning two users (invitation lookup and acceptance).
    """
    return _scoped("")
