"""
Shared fixtures.

API tests run against an in-memory stand-in for the SQL repositories;
repository tests run the real SQL on a disposable Postgres server.
"""

from __future__ import annotations

import itertools
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pgserver
import pytest
from fastapi.testclient import TestClient

from auth import repository as auth_repository
from auth import security
from auth.roles import Identity, Role
from content import repository as content_repository
from core import db
from main import app


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """
    Mirrors the query semantics of `auth.repository` and `content.repository`.
    """

    CONTENT_FUNCTIONS = (
        "list_content",
        "count_content",
        "insert_content",
        "set_status",
        "status_counts",
        "monthly_counts",
        "recent_decisions",
    )
    AUTH_FUNCTIONS = ("get_user_by_email", "create_user")

    def __init__(self) -> None:
        self.users: dict[int, dict] = {}
        self.content: dict[int, dict] = {}
        self._user_ids = itertools.count(1)
        self._content_ids = itertools.count(1)
        self.last_filters: content_repository.ContentFilters | None = None
        self.last_since: datetime | None = None

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in self.CONTENT_FUNCTIONS:
            monkeypatch.setattr(content_repository, name, getattr(self, name))
        for name in self.AUTH_FUNCTIONS:
            monkeypatch.setattr(auth_repository, name, getattr(self, name))

    # --- seeding -------------------------------------------------------

    def add_user(self, email: str, role: Role = Role.USER, password_hash: str = "!") -> Identity:
        user_id = next(self._user_ids)
        self.users[user_id] = {
            "id": user_id,
            "email": auth_repository.normalize_email(email),
            "password_hash": password_hash,
            "role": role.value,
            "created_at": _now(),
        }
        return Identity(id=user_id, email=self.users[user_id]["email"], role=role)

    def add_content(
        self,
        *,
        created_by: int,
        title: str = "Seeded title",
        description: str = "Seeded description text",
        status: str = "pending",
        created_at: datetime | None = None,
        approved_by: int | None = None,
        approved_at: datetime | None = None,
    ) -> dict:
        content_id = next(self._content_ids)
        self.content[content_id] = {
            "id": content_id,
            "title": title,
            "description": description,
            "status": status,
            "created_by": created_by,
            "approved_by": approved_by,
            "created_at": created_at or _now(),
            "approved_at": approved_at,
        }
        return self.content[content_id]

    def _resolved(self, row: dict) -> dict:
        resolved = dict(row)
        resolved["created_by_email"] = self.users[row["created_by"]]["email"]
        approver = self.users.get(row["approved_by"]) if row["approved_by"] is not None else None
        resolved["approved_by_email"] = approver["email"] if approver else None
        return resolved

    # --- auth repository -----------------------------------------------

    async def get_user_by_email(self, email: str) -> dict | None:
        email = auth_repository.normalize_email(email)
        for row in self.users.values():
            if row["email"] == email:
                return dict(row)
        return None

    async def create_user(self, *, email: str, password_hash: str, role: str) -> dict:
        identity = self.add_user(email, Role(role), password_hash)
        return dict(self.users[identity.id])

    # --- content repository --------------------------------------------

    def _matching(self, filters: content_repository.ContentFilters) -> list[dict]:
        keyword = (filters.keyword or "").strip().lower()
        rows = []
        for row in self.content.values():
            if filters.owner_id is not None and row["created_by"] != filters.owner_id:
                continue
            if filters.status and row["status"] != filters.status:
                continue
            if keyword and keyword not in row["title"].lower() and keyword not in row["description"].lower():
                continue
            rows.append(row)
        rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        return rows

    async def list_content(self, filters, *, limit: int, offset: int) -> list[dict]:
        self.last_filters = filters
        return [self._resolved(r) for r in self._matching(filters)[offset : offset + limit]]

    async def count_content(self, filters) -> int:
        self.last_filters = filters
        return len(self._matching(filters))

    async def insert_content(self, *, title: str, description: str, created_by: int) -> dict:
        row = self.add_content(title=title, description=description, created_by=created_by)
        return self._resolved(row)

    async def set_status(self, content_id: int, *, status: str, decided_by: int) -> dict | None:
        row = self.content.get(content_id)
        if row is None:
            return None
        row.update(status=status, approved_by=decided_by, approved_at=_now())
        return self._resolved(row)

    async def status_counts(self) -> dict[str, int]:
        rows = list(self.content.values())
        counts = {"total": len(rows), "pending": 0, "approved": 0, "rejected": 0}
        for row in rows:
            counts[row["status"]] += 1
        return counts

    async def monthly_counts(self, *, since: datetime) -> list[dict]:
        self.last_since = since
        buckets: dict[tuple[int, int, str], int] = {}
        for row in self.content.values():
            created_at = row["created_at"].astimezone(timezone.utc)
            if created_at < since:
                continue
            key = (created_at.year, created_at.month, row["status"])
            buckets[key] = buckets.get(key, 0) + 1
        return [
            {"year": year, "month": month, "status": status, "count": count}
            for (year, month, status), count in sorted(buckets.items())
        ]

    async def recent_decisions(self, *, limit: int) -> list[dict]:
        decided = [r for r in self.content.values() if r["status"] in ("approved", "rejected")]
        decided.sort(key=lambda r: (r["approved_at"], r["id"]), reverse=True)
        return [self._resolved(r) for r in decided[:limit]]


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryStore:
    fake = InMemoryStore()
    fake.install(monkeypatch)
    return fake


@pytest.fixture
def client(store: InMemoryStore) -> TestClient:
    # No context manager: the lifespan (real DB pool) is not started.
    return TestClient(app)


def bearer(identity: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {security.build_access_token(identity)}"}


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def alice(store: InMemoryStore) -> Identity:
    return store.add_user("alice@example.com")


@pytest.fixture
def bob(store: InMemoryStore) -> Identity:
    return store.add_user("bob@example.com")


@pytest.fixture
def admin(store: InMemoryStore) -> Identity:
    return store.add_user("admin@example.com", Role.ADMIN)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def postgres_url():
    """
    A throwaway Postgres server for the whole session (bundled binaries, no system install).
    """
    # World-traversable parent: pgserver drops to an unprivileged user when run as root.
    pgdata = Path(tempfile.mkdtemp(prefix="contentflow-pg-"))
    pgdata.chmod(0o755)
    server = pgserver.get_server(pgdata, cleanup_mode="stop")
    try:
        yield server.get_uri()
    finally:
        server.cleanup()
        shutil.rmtree(pgdata, ignore_errors=True)


@pytest.fixture
async def database(postgres_url, monkeypatch):
    """
    Fresh schema and empty tables on the real pool for each test.
    """
    monkeypatch.setenv("DATABASE_URL", postgres_url)
    await db.init_pool()
    try:
        await db.ensure_schema()
        await db.pool().execute("TRUNCATE content, users RESTART IDENTITY CASCADE")
        yield db.pool()
    finally:
        await db.close_pool()
