"""
Content moderation business logic.

Scope:
- submission (user role) with server-side length validation
- role-aware listing with status/keyword filters and pagination
- approve/reject decisions (admin role), last write wins
- dashboard statistics and the recent-decisions feed (admin role)
"""

from __future__ import annotations

import calendar
import logging
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from auth.roles import Identity, sees_all_content
from core.errors import AppError, InternalError, NotFoundError, ValidationError

from . import repository
from .schemas import ContentStatus, CreateContentRequest, parse_status

TITLE_MIN, TITLE_MAX = 3, 100
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 1000
STATS_WINDOW_MONTHS = 6
RECENT_ACTIVITY_LIMIT = 5
MAX_PAGE_SIZE = 100
# Content ids are Postgres bigint.
MAX_CONTENT_ID = 2**63 - 1

_DECISION_VERBS = {
    ContentStatus.APPROVED: ("approved", "approving"),
    ContentStatus.REJECTED: ("rejected", "rejecting"),
}

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@asynccontextmanager
async def _persistence(action: str) -> AsyncIterator[None]:
    """
    Convert unexpected storage failures into a generic 500 for the client.
    """
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.exception("content_storage_failed action=%s", action.replace(" ", "_"))
        raise InternalError(f"Server error {action}") from exc


def validate_submission(title: str | None, description: str | None) -> tuple[str, str]:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise ValidationError("Title and description are required")
    if not TITLE_MIN <= len(title) <= TITLE_MAX:
        raise ValidationError(f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters")
    if not DESCRIPTION_MIN <= len(description) <= DESCRIPTION_MAX:
        raise ValidationError(
            f"Description must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters"
        )
    return title, description


def paginate(*, total: int, page: int, limit: int) -> dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def months_ago(moment: datetime, months: int) -> datetime:
    """
    Step back whole calendar months, clamping the day to the target month's length.
    """
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _user_ref(user_id: Any, email: Any) -> dict[str, Any] | None:
    if user_id is None:
        return None
    return {"id": int(user_id), "email": str(email) if email is not None else None}


def serialize_content(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": int(row["id"]),
        "title": str(row["title"]),
        "description": str(row["description"]),
        "status": str(row["status"]),
        "createdBy": _user_ref(row["created_by"], row.get("created_by_email")),
        "approvedBy": _user_ref(row.get("approved_by"), row.get("approved_by_email")),
        "createdAt": row["created_at"],
        "approvedAt": row.get("approved_at"),
    }


async def list_content(
    identity: Identity,
    *,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    keyword: str = "",
) -> dict[str, Any]:
    status_filter = parse_status(status)
    filters = repository.ContentFilters(
        owner_id=None if sees_all_content(identity.role) else identity.id,
        status=status_filter.value if status_filter is not None else None,
        keyword=keyword or "",
    )

    limit = min(limit, MAX_PAGE_SIZE)
    offset = (page - 1) * limit

    async with _persistence("fetching content"):
        total = await repository.count_content(filters)
        # Past the last row: nothing to fetch, and the offset may not fit in bigint.
        rows = await repository.list_content(filters, limit=limit, offset=offset) if offset < total else []

    return {
        "content": [serialize_content(row) for row in rows],
        "pagination": paginate(total=total, page=page, limit=limit),
    }


async def create_content(identity: Identity, payload: CreateContentRequest) -> dict[str, Any]:
    title, description = validate_submission(payload.title, payload.description)

    async with _persistence("creating content"):
        row = await repository.insert_content(
            title=title,
            description=description,
            created_by=identity.id,
        )

    logger.info("content_created content_id=%s user_id=%s", row["id"], identity.id)
    return {
        "message": "Content created successfully",
        "content": serialize_content(row),
    }


async def decide(identity: Identity, content_id: int, decision: ContentStatus) -> dict[str, Any]:
    if decision not in _DECISION_VERBS:
        raise ValidationError(f"Unsupported decision: {decision.value}")
    past, progressive = _DECISION_VERBS[decision]
    if not 1 <= content_id <= MAX_CONTENT_ID:
        raise NotFoundError("Content not found")

    async with _persistence(f"{progressive} content"):
        row = await repository.set_status(
            content_id,
            status=decision.value,
            decided_by=identity.id,
        )

    if row is None:
        raise NotFoundError("Content not found")

    logger.info(
        "content_decided content_id=%s status=%s admin_id=%s",
        content_id,
        decision.value,
        identity.id,
    )
    return {
        "message": f"Content {past} successfully",
        "content": serialize_content(row),
    }


async def stats() -> dict[str, Any]:
    since = months_ago(_utc_now(), STATS_WINDOW_MONTHS)

    async with _persistence("fetching statistics"):
        counts = await repository.status_counts()
        monthly = await repository.monthly_counts(since=since)

    return {
        "totalSubmissions": int(counts["total"]),
        "approved": int(counts["approved"]),
        "rejected": int(counts["rejected"]),
        "pending": int(counts["pending"]),
        "monthlyStats": [
            {
                "_id": {
                    "year": int(row["year"]),
                    "month": int(row["month"]),
                    "status": str(row["status"]),
                },
                "count": int(row["count"]),
            }
            for row in monthly
        ],
    }


async def recent_activity() -> list[dict[str, Any]]:
    async with _persistence("fetching recent activity"):
        rows = await repository.recent_decisions(limit=RECENT_ACTIVITY_LIMIT)
    return [serialize_content(row) for row in rows]
