"""Like state computation, toggling and live count subscriptions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol, cast

from supabase import Client

from socialfeed.errors import DuplicateRecordError, StorageError, ValidationError
from socialfeed.schemas.likes import LikeRecord, LikeState
from socialfeed.supabase_client import execute
from socialfeed.time_utils import utc_now_iso

logger = logging.getLogger(__name__)

LIKES_TABLE = "likes"


class LikeStorage(Protocol):
    """The four storage operations the like service relies on."""

    def find(self, post_id: str, user_id: str) -> LikeRecord | None: ...

    def insert(self, post_id: str, user_id: str) -> LikeRecord: ...

    def delete(self, record_id: str) -> bool: ...

    def count(self, post_id: str) -> int: ...


class LikeStore:
    """Supabase-backed storage for like records.

    The ``likes`` table carries a unique key on ``(post_id, user_id)``; that
    constraint is the only concurrency guard for toggles.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    def find(self, post_id: str, user_id: str) -> LikeRecord | None:
        result = execute(
            self._client.table(LIKES_TABLE)
            .select("*")
            .eq("post_id", post_id)
            .eq("user_id", user_id),
            "look up like",
        )
        rows = cast(list[dict[str, Any]], result.data)
        return LikeRecord.model_validate(rows[0]) if rows else None

    def insert(self, post_id: str, user_id: str) -> LikeRecord:
        result = execute(
            self._client.table(LIKES_TABLE).insert(
                {"post_id": post_id, "user_id": user_id, "created_at": utc_now_iso()}
            ),
            "insert like",
        )
        row = cast(dict[str, Any], result.data[0])
        return LikeRecord.model_validate(row)

    def delete(self, record_id: str) -> bool:
        result = execute(
            self._client.table(LIKES_TABLE).delete().eq("id", record_id),
            "delete like",
        )
        return bool(result.data)

    def count(self, post_id: str) -> int:
        result = execute(
            self._client.table(LIKES_TABLE)
            .select("id", count="exact")
            .eq("post_id", post_id),
            "count likes",
        )
        return int(result.count or 0)


def _require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


class LikeService:
    """Computes and mutates like state for (post, user) pairs.

    No locking happens here: concurrent toggles on distinct pairs never touch
    the same record, and two concurrent toggles on the same pair resolve in
    whatever order storage applies them.
    """

    def __init__(self, store: LikeStorage) -> None:
        self._store = store

    def count_likes(self, post_id: str) -> int:
        """Return the number of like records for a post."""
        return self._store.count(_require(post_id, "postId"))

    def get_state(self, post_id: str, user_id: str | None = None) -> LikeState:
        """Return the like count and, for a known user, whether they like the post.

        Args:
            post_id: The post to inspect.
            user_id: The requesting user, or None for anonymous readers.

        Raises:
            ValidationError: ``post_id`` is empty.
            StorageError: The backend failed.
        """
        _require(post_id, "postId")
        likes_count = self._store.count(post_id)
        liked = bool(user_id) and self._store.find(post_id, user_id) is not None
        return LikeState(likes_count=likes_count, liked=liked)

    def toggle(self, post_id: str, user_id: str) -> LikeState:
        """Like the post if the user has not, otherwise remove their like.

        Exactly one insert or delete is issued, then the count is recomputed
        from storage. If a concurrent toggle by the same user inserted first,
        the unique key rejects our insert and the post is reported as liked.

        Args:
            post_id: The post to like or unlike.
            user_id: An authenticated user id.

        Returns:
            The authoritative state after the mutation.

        Raises:
            ValidationError: Either identifier is empty.
            StorageError: The backend failed.
        """
        _require(post_id, "postId")
        _require(user_id, "userId")

        existing = self._store.find(post_id, user_id)
        if existing is not None:
            self._store.delete(existing.id)
            liked = False
        else:
            try:
                self._store.insert(post_id, user_id)
            except DuplicateRecordError:
                logger.info(
                    "Concurrent like for post %s by user %s already stored",
                    post_id,
                    user_id,
                )
            liked = True

        likes_count = self._store.count(post_id)
        logger.info(
            "User %s %s post %s (likes=%d)",
            user_id,
            "liked" if liked else "unliked",
            post_id,
            likes_count,
        )
        return LikeState(likes_count=likes_count, liked=liked)

    async def subscribe(
        self,
        post_id: str,
        *,
        interval: float,
        skip_first: bool = False,
    ) -> AsyncIterator[int]:
        """Yield the post's like count now and then once per interval, forever.

        Every tick runs one fresh count query in a worker thread and yields
        the result whether or not it changed. A failed query is logged and
        that tick produces nothing. The generator only stops when the caller
        closes or cancels it.

        Args:
            post_id: The post to watch.
            interval: Seconds between ticks.
            skip_first: Wait one interval before the first query, for callers
                that already sent an initial value.
        """
        _require(post_id, "postId")
        if skip_first:
            await asyncio.sleep(interval)
        while True:
            try:
                likes_count = await asyncio.to_thread(self._store.count, post_id)
            except StorageError:
                logger.warning("Skipping like count tick for post %s", post_id)
            else:
                yield likes_count
            await asyncio.sleep(interval)
