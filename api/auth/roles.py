"""
Caller roles and the resolved request identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: Role

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role.value}


def parse_role(raw: object) -> Role | None:
    try:
        return Role(str(raw or "").strip().lower())
    except ValueError:
        return None


def sees_all_content(role: Role) -> bool:
    """
    Whether a role reads the whole content collection or only its own rows.
    """
    if role is Role.ADMIN:
        return True
    if role is Role.USER:
        return False
    raise AssertionError(f"Unhandled role: {role!r}")
