"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from core import config

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id bigserial PRIMARY KEY,
        email text NOT NULL UNIQUE,
        password_hash text NOT NULL,
        role text NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS content (
        id bigserial PRIMARY KEY,
        title text NOT NULL,
        description text NOT NULL,
        status text NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'approved', 'rejected')),
        created_by bigint NOT NULL REFERENCES users (id),
        approved_by bigint REFERENCES users (id),
        created_at timestamptz NOT NULL DEFAULT now(),
        approved_at timestamptz,
        CHECK ((approved_by IS NULL) = (approved_at IS NULL))
    )
    """,
    "CREATE INDEX IF NOT EXISTS content_created_by_idx ON content (created_by, created_at DESC)",
    "CREATE INDEX IF NOT EXISTS content_created_at_idx ON content (created_at DESC)",
    "CREATE INDEX IF NOT EXISTS content_decided_idx ON content (status, approved_at DESC)",
)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = config.env_str("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=config.env_int("DB_POOL_MAX_SIZE", 5),
        command_timeout=30,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


async def ensure_schema() -> None:
    """
    Create tables and indexes when missing. Safe to run on every startup.
    """
    async with pool().acquire() as conn:
        async with conn.transaction():
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
    logger.info("schema_ready tables=users,content")


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool().fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def fetch_val(sql: str, *args: Any) -> Any:
    """
    Run a query and return the first column of the first row.
    """
    return await pool().fetchval(sql, *args)
