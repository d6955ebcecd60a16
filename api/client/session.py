"""
Client-side auth session as an explicit state machine.

States are immutable values; every transition is a pure function returning
the next state, so callers keep the current state wherever they like and pass
it explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import jwt

from auth.roles import Identity, Role, parse_role


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticating:
    pass


@dataclass(frozen=True)
class Authenticated:
    identity: Identity
    token: str


@dataclass(frozen=True)
class Failed:
    message: str


AuthState = Union[Anonymous, Authenticating, Authenticated, Failed]

ANONYMOUS = Anonymous()


def identity_from_user(user: dict[str, Any]) -> Identity | None:
    role = parse_role(user.get("role"))
    raw_id = user.get("id")
    if role is None or raw_id is None:
        return None
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        return None
    return Identity(id=user_id, email=str(user.get("email") or ""), role=role)


def start_login(state: AuthState) -> AuthState:
    return Authenticating()


def login_succeeded(state: AuthState, *, token: str, user: dict[str, Any]) -> AuthState:
    identity = identity_from_user(user)
    if identity is None or not token:
        return Failed("Malformed login response.")
    return Authenticated(identity=identity, token=token)


def login_failed(state: AuthState, message: str) -> AuthState:
    return Failed(message or "Login failed")


def logout(state: AuthState) -> AuthState:
    return ANONYMOUS


def clear_error(state: AuthState) -> AuthState:
    if isinstance(state, Failed):
        return ANONYMOUS
    return state


def restore(token: str | None, user: dict[str, Any] | None, *, now: float) -> AuthState:
    """
    Rebuild a session from stored credentials, dropping expired or unreadable tokens.

    The signature is not checked here; the server verifies it on every call.
    """
    if not token or not user:
        return ANONYMOUS
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return ANONYMOUS

    expires_at = claims.get("exp")
    if not isinstance(expires_at, (int, float)) or expires_at < now:
        return ANONYMOUS

    identity = identity_from_user(user)
    if identity is None:
        return ANONYMOUS
    return Authenticated(identity=identity, token=token)


def landing_path(state: AuthState) -> str:
    if not isinstance(state, Authenticated):
        return "/login"
    role = state.identity.role
    if role is Role.ADMIN:
        return "/admin"
    if role is Role.USER:
        return "/dashboard"
    raise AssertionError(f"Unhandled role: {role!r}")


def is_admin(state: AuthState) -> bool:
    return isinstance(state, Authenticated) and state.identity.role is Role.ADMIN
