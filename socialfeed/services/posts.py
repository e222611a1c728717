"""Post feed storage."""

from __future__ import annotations

from typing import Any, Protocol, cast

from supabase import Client

from socialfeed.supabase_client import execute

POSTS_TABLE = "posts"
DEFAULT_FEED_LIMIT = 50


class PostStorage(Protocol):
    def list_recent(self, limit: int = DEFAULT_FEED_LIMIT) -> list[dict[str, Any]]: ...

    def find_by_title(self, title: str) -> dict[str, Any] | None: ...

    def insert(self, row: dict[str, Any]) -> dict[str, Any]: ...


class PostStore:
    """Supabase-backed post rows."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def list_recent(self, limit: int = DEFAULT_FEED_LIMIT) -> list[dict[str, Any]]:
        """Return the newest posts first."""
        result = execute(
            self._client.table(POSTS_TABLE)
            .select("id, title, author, description, created_at")
            .order("created_at", desc=True)
            .limit(limit),
            "list posts",
        )
        return cast(list[dict[str, Any]], result.data)

    def find_by_title(self, title: str) -> dict[str, Any] | None:
        result = execute(
            self._client.table(POSTS_TABLE).select("id").eq("title", title),
            "look up post",
        )
        rows = cast(list[dict[str, Any]], result.data)
        return rows[0] if rows else None

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        result = execute(self._client.table(POSTS_TABLE).insert(row), "create post")
        return cast(dict[str, Any], result.data[0])
