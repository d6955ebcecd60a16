"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header

from core.errors import AuthenticationError, AuthorizationError

from . import security
from .roles import Identity, Role


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise AuthenticationError("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise AuthenticationError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise AuthenticationError("Authorization must be: Bearer <token>.")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_user(access_token: str = Depends(get_bearer_token)) -> Identity:
    try:
        return security.identity_from_token(access_token)
    except security.AuthSecurityError as exc:
        raise AuthenticationError(str(exc)) from exc


def require_roles(*roles: Role) -> Callable[..., Awaitable[Identity]]:
    """
    Build a dependency that resolves the caller and rejects roles outside `roles`.
    """
    permitted = frozenset(roles)

    async def _require(current_user: Identity = Depends(get_current_user)) -> Identity:
        if current_user.role not in permitted:
            raise AuthorizationError("Access denied. Insufficient permissions.")
        return current_user

    return _require


require_user = require_roles(Role.USER)
require_admin = require_roles(Role.ADMIN)
