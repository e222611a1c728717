"""Shared test fixtures.

Replaces the Supabase-backed stores with in-memory versions and pins the
settings so session tokens can be signed and verified in tests.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Iterator
from typing import Any

import jwt
import pytest

from socialfeed.config import Settings, get_settings
from socialfeed.dependencies import get_like_store, get_post_store, get_user_store
from socialfeed.errors import DuplicateRecordError, StorageError
from socialfeed.main import app
from socialfeed.schemas.likes import LikeRecord
from socialfeed.services.users import hash_password
from socialfeed.time_utils import utc_now, utc_now_iso

JWT_SECRET = "test-jwt-secret-for-testing"
MOCK_USER_ID = "user-1"


def _new_record(post_id: str, user_id: str) -> LikeRecord:
    return LikeRecord(
        id=uuid.uuid4().hex, post_id=post_id, user_id=user_id, created_at=utc_now()
    )


class InMemoryLikeStore:
    """Like records keyed by (post_id, user_id), with call counters."""

    def __init__(self) -> None:
        self.records: dict[tuple[str, str], LikeRecord] = {}
        self.calls: dict[str, int] = {"find": 0, "insert": 0, "delete": 0, "count": 0}
        self.fail_with: StorageError | None = None
        self._lock = threading.Lock()

    def _enter(self, op: str) -> None:
        self.calls[op] += 1
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def mutations(self) -> int:
        return self.calls["insert"] + self.calls["delete"]

    def seed(self, post_id: str, user_ids: list[str]) -> None:
        for user_id in user_ids:
            self.records[(post_id, user_id)] = _new_record(post_id, user_id)

    def find(self, post_id: str, user_id: str) -> LikeRecord | None:
        self._enter("find")
        with self._lock:
            return self.records.get((post_id, user_id))

    def insert(self, post_id: str, user_id: str) -> LikeRecord:
        self._enter("insert")
        with self._lock:
            if (post_id, user_id) in self.records:
                raise DuplicateRecordError("Duplicate record while trying to insert like")
            record = _new_record(post_id, user_id)
            self.records[(post_id, user_id)] = record
            return record

    def delete(self, record_id: str) -> bool:
        self._enter("delete")
        with self._lock:
            for key, record in list(self.records.items()):
                if record.id == record_id:
                    del self.records[key]
                    return True
            return False

    def count(self, post_id: str) -> int:
        self._enter("count")
        with self._lock:
            return sum(1 for p, _ in self.records if p == post_id)


class InMemoryUserStore:
    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}

    def add(
        self, username: str, password: str, full_name: str = "Test User"
    ) -> dict[str, Any]:
        row = {
            "id": uuid.uuid4().hex,
            "username": username,
            "password_hash": hash_password(password),
            "full_name": full_name,
        }
        self.rows[row["id"]] = row
        return row

    def find_by_username(self, username: str) -> dict[str, Any] | None:
        return next((r for r in self.rows.values() if r["username"] == username), None)

    def find_by_id(self, user_id: str) -> dict[str, Any] | None:
        return self.rows.get(user_id)

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        if self.find_by_username(row["username"]) is not None:
            raise DuplicateRecordError("Duplicate record while trying to create user")
        stored = {"id": uuid.uuid4().hex, **row}
        self.rows[stored["id"]] = stored
        return stored


class InMemoryPostStore:
    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []

    def list_recent(self, limit: int = 50) -> list[dict[str, Any]]:
        return sorted(self.rows, key=lambda r: r["created_at"], reverse=True)[:limit]

    def find_by_title(self, title: str) -> dict[str, Any] | None:
        return next((r for r in self.rows if r["title"] == title), None)

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        stored = {"id": uuid.uuid4().hex, "created_at": utc_now_iso(), **row}
        self.rows.append(stored)
        return stored


def make_token(
    *,
    sub: str = MOCK_USER_ID,
    expired: bool = False,
    secret: str = JWT_SECRET,
) -> str:
    """Create a session token for testing."""
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": sub,
        "username": "tester",
        "iat": now,
        "exp": now - 100 if expired else now + 3600,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def settings() -> Settings:
    return Settings(env="dev", jwt_secret=JWT_SECRET, session_ttl_seconds=3600)


@pytest.fixture
def like_store() -> InMemoryLikeStore:
    return InMemoryLikeStore()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def post_store() -> InMemoryPostStore:
    return InMemoryPostStore()


@pytest.fixture(autouse=True)
def override_dependencies(
    settings: Settings,
    like_store: InMemoryLikeStore,
    user_store: InMemoryUserStore,
    post_store: InMemoryPostStore,
) -> Iterator[None]:
    """Point every route at the in-memory stores and the test settings."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_like_store] = lambda: like_store
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_post_store] = lambda: post_store
    yield
    app.dependency_overrides.clear()
