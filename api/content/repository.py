"""
Content persistence (raw SQL).

Every read joins `users` so that `created_by` / `approved_by` come back with
the referenced email next to the id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core import db

_RESOLVED_COLUMNS = """
    c.id, c.title, c.description, c.status, c.created_at, c.approved_at,
    c.created_by, creator.email AS created_by_email,
    c.approved_by, approver.email AS approved_by_email
"""

_USER_JOINS = """
    JOIN users creator ON creator.id = c.created_by
    LEFT JOIN users approver ON approver.id = c.approved_by
"""


@dataclass(frozen=True)
class ContentFilters:
    owner_id: int | None = None
    status: str | None = None
    keyword: str = ""


def build_where(filters: ContentFilters) -> tuple[str, list[Any]]:
    """
    Translate list filters into a WHERE clause plus positional arguments.

    The keyword is matched as a literal, case-insensitive substring of either
    the title or the description.
    """
    clauses: list[str] = []
    args: list[Any] = []

    if filters.owner_id is not None:
        args.append(filters.owner_id)
        clauses.append(f"c.created_by = ${len(args)}")

    if filters.status:
        args.append(filters.status)
        clauses.append(f"c.status = ${len(args)}")

    keyword = (filters.keyword or "").strip().lower()
    if keyword:
        args.append(keyword)
        n = len(args)
        clauses.append(
            f"(strpos(lower(c.title), ${n}) > 0 OR strpos(lower(c.description), ${n}) > 0)"
        )

    if not clauses:
        return "", args
    return "WHERE " + "\n  AND ".join(clauses), args


async def list_content(filters: ContentFilters, *, limit: int, offset: int) -> list[dict[str, Any]]:
    where, args = build_where(filters)
    n = len(args)
    return await db.fetch_all(
        f"""
        SELECT {_RESOLVED_COLUMNS}
        FROM content c
        {_USER_JOINS}
        {where}
        ORDER BY c.created_at DESC, c.id DESC
        LIMIT ${n + 1}
        OFFSET ${n + 2}
        """,
        *args,
        limit,
        offset,
    )


async def count_content(filters: ContentFilters) -> int:
    where, args = build_where(filters)
    total = await db.fetch_val(
        f"""
        SELECT count(*)
        FROM content c
        {where}
        """,
        *args,
    )
    return int(total or 0)


async def insert_content(*, title: str, description: str, created_by: int) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        WITH c AS (
          INSERT INTO content (title, description, status, created_by)
          VALUES ($1, $2, 'pending', $3)
          RETURNING *
        )
        SELECT {_RESOLVED_COLUMNS}
        FROM c
        {_USER_JOINS}
        """,
        title,
        description,
        created_by,
    )
    if row is None:
        raise RuntimeError("Failed to insert content.")
    return row


async def set_status(content_id: int, *, status: str, decided_by: int) -> dict[str, Any] | None:
    """
    Record a moderation decision. Returns None when the id does not exist.

    Last write wins: status, approver and decision time always move together.
    """
    return await db.fetch_one(
        f"""
        WITH c AS (
          UPDATE content
          SET status = $2,
              approved_by = $3,
              approved_at = now()
          WHERE id = $1
          RETURNING *
        )
        SELECT {_RESOLVED_COLUMNS}
        FROM c
        {_USER_JOINS}
        """,
        content_id,
        status,
        decided_by,
    )


async def status_counts() -> dict[str, int]:
    row = await db.fetch_one(
        """
        SELECT
          count(*)::int AS total,
          count(*) FILTER (WHERE status = 'pending')::int AS pending,
          count(*) FILTER (WHERE status = 'approved')::int AS approved,
          count(*) FILTER (WHERE status = 'rejected')::int AS rejected
        FROM content
        """
    )
    if row is None:
        raise RuntimeError("Failed to count content.")
    return row


async def monthly_counts(*, since: datetime) -> list[dict[str, Any]]:
    """
    Count submissions created on/after `since`, grouped by UTC year, month and status.
    """
    return await db.fetch_all(
        """
        SELECT
          EXTRACT(YEAR FROM created_at AT TIME ZONE 'UTC')::int AS year,
          EXTRACT(MONTH FROM created_at AT TIME ZONE 'UTC')::int AS month,
          status,
          count(*)::int AS count
        FROM content
        WHERE created_at >= $1
        GROUP BY 1, 2, 3
        ORDER BY 1 ASC, 2 ASC, 3 ASC
        """,
        since,
    )


async def recent_decisions(*, limit: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {_RESOLVED_COLUMNS}
        FROM content c
        {_USER_JOINS}
        WHERE c.status IN ('approved', 'rejected')
        ORDER BY c.approved_at DESC, c.id DESC
        LIMIT $1
        """,
        limit,
    )
