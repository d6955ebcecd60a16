"""
Content API schemas.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ContentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def parse_status(raw: str | None) -> ContentStatus | None:
    """
    Map a query-string status onto the enum; anything unknown means "no filter".
    """
    try:
        return ContentStatus((raw or "").strip())
    except ValueError:
        return None


class CreateContentRequest(BaseModel):
    # Optional here so missing fields get the same message as blank ones.
    title: str | None = None
    description: str | None = None
