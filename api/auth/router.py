"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from . import dependencies, schemas, service
from .roles import Identity

router = APIRouter(prefix="/api/auth")


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(request: schemas.SignupRequest) -> schemas.AuthResponse:
    return await service.signup(request)


@router.post("/login")
async def login(request: schemas.LoginRequest) -> schemas.AuthResponse:
    return await service.login(request)


@router.get("/me")
async def me(current_user: Identity = Depends(dependencies.get_current_user)) -> dict:
    return service.me(current_user)
