"""
Auth business logic.
"""

from __future__ import annotations

import logging
import re

import asyncpg

from core import config
from core.errors import AuthenticationError, ConflictError, ValidationError

from . import repository, schemas, security
from .roles import Identity, Role, parse_role

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

logger = logging.getLogger(__name__)


def role_for_new_user(email: str) -> Role:
    if repository.normalize_email(email) in config.admin_emails():
        return Role.ADMIN
    return Role.USER


def _identity_from_row(user_row: dict) -> Identity:
    role = parse_role(user_row.get("role"))
    if role is None:
        raise RuntimeError(f"User {user_row.get('id')} has an unknown role.")
    return Identity(id=int(user_row["id"]), email=str(user_row["email"]), role=role)


def _to_user_response(identity: Identity) -> schemas.UserResponse:
    return schemas.UserResponse(id=identity.id, email=identity.email, role=identity.role.value)


def _auth_response(identity: Identity) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        token=security.build_access_token(identity),
        user=_to_user_response(identity),
    )


async def signup(payload: schemas.SignupRequest) -> schemas.AuthResponse:
    email = repository.normalize_email(payload.email)
    if not EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email.")

    existing = await repository.get_user_by_email(email)
    if existing is not None:
        raise ConflictError("Email is already registered.")

    role = role_for_new_user(email)
    password_hash = security.hash_password(payload.password)
    try:
        user_row = await repository.create_user(
            email=email,
            password_hash=password_hash,
            role=role.value,
        )
    except asyncpg.UniqueViolationError as exc:
        # Lost a race with a concurrent signup for the same address.
        raise ConflictError("Email is already registered.") from exc

    identity = _identity_from_row(user_row)
    logger.info("user_signed_up user_id=%s role=%s", identity.id, identity.role.value)
    return _auth_response(identity)


async def login(payload: schemas.LoginRequest) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None:
        raise AuthenticationError("Invalid email or password.")

    is_valid = security.verify_password(payload.password, str(user_row.get("password_hash") or ""))
    if not is_valid:
        raise AuthenticationError("Invalid email or password.")

    identity = _identity_from_row(user_row)
    logger.info("user_logged_in user_id=%s", identity.id)
    return _auth_response(identity)


def me(identity: Identity) -> dict:
    return {"user": _to_user_response(identity).model_dump()}
