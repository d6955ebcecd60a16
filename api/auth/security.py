"""
Auth security helpers.
"""

from __future__ import annotations

import time
from typing import Any

import bcrypt
import jwt

from core import config

from .roles import Identity, parse_role

DEFAULT_JWT_SECRET = "dev-change-this-secret"


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return config.env_str("JWT_SECRET", DEFAULT_JWT_SECRET)


def jwt_algorithm() -> str:
    return config.env_str("JWT_ALG", "HS256")


def access_token_expire_minutes() -> int:
    return config.env_int("ACCESS_TOKEN_EXPIRE_MIN", 24 * 60)


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_access_token(identity: Identity, *, issued_at: int | None = None) -> str:
    issued_at = now_epoch_s() if issued_at is None else issued_at
    expires_at = issued_at + (access_token_expire_minutes() * 60)

    payload = {
        "sub": str(identity.id),
        "email": identity.email,
        "role": identity.role.value,
        "type": "access",
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != "access":
        raise AuthSecurityError("Token is not an access token.")

    return payload


def identity_from_token(token: str) -> Identity:
    payload = decode_access_token(token)

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise AuthSecurityError("Invalid access token subject.")

    role = parse_role(payload.get("role"))
    if role is None:
        raise AuthSecurityError("Invalid access token role.")

    email = str(payload.get("email") or "").strip()
    return Identity(id=int(subject), email=email, role=role)
