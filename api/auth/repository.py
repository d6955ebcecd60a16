"""
Auth persistence helpers.
"""

from __future__ import annotations

from core import db


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(*, email: str, password_hash: str, role: str) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO users (email, password_hash, role)
        VALUES ($1, $2, $3)
        RETURNING id, email, role, created_at
        """,
        normalize_email(email),
        password_hash,
        role,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, email, password_hash, role, created_at
        FROM users
        WHERE email = $1
        """,
        normalize_email(email),
    )
