"""
Content API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, status

from auth import dependencies as auth_dependencies
from auth.roles import Identity

from . import service
from .schemas import ContentStatus, CreateContentRequest

router = APIRouter(prefix="/api/content")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_content(
    request: CreateContentRequest,
    current_user: Identity = Depends(auth_dependencies.require_user),
) -> dict:
    return await service.create_content(current_user, request)


@router.get("")
async def list_content(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    status_filter: str | None = Query(default=None, alias="status"),
    keyword: str = Query(default=""),
    current_user: Identity = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    Admins see every submission; users see only their own.

    `limit` above 100 is served as 100; the pagination block reflects the
    page size actually used.
    """
    return await service.list_content(
        current_user,
        page=page,
        limit=limit,
        status=status_filter,
        keyword=keyword,
    )


@router.put("/{content_id}/approve")
async def approve_content(
    content_id: int = Path(...),
    current_user: Identity = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.decide(current_user, content_id, ContentStatus.APPROVED)


@router.put("/{content_id}/reject")
async def reject_content(
    content_id: int = Path(...),
    current_user: Identity = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.decide(current_user, content_id, ContentStatus.REJECTED)


@router.get("/stats")
async def content_stats(
    _: Identity = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.stats()


@router.get("/recent")
async def recent_activity(
    _: Identity = Depends(auth_dependencies.require_admin),
) -> list[dict]:
    return await service.recent_activity()
