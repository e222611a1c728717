"""Keeps a displayed like counter in step with the server.

One ``LikeSyncController`` per displayed post. It fetches the like state on
mount, then either polls or follows the server-sent stream until unmount.
Toggles are applied optimistically and then replaced by the server's answer,
or rolled back if the call fails.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from enum import StrEnum

import pydantic

from socialfeed.client.api import ApiRequestError, LikesApiClient
from socialfeed.errors import AuthorizationError
from socialfeed.schemas.likes import LikeState

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 2.0
LOGIN_REQUIRED_MESSAGE = "Login to like this post."
TOGGLE_FAILED_MESSAGE = "Failed to update like. Please try again."


class SyncState(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"
    OPTIMISTIC_PENDING = "optimistic_pending"


class ToggleOutcome(StrEnum):
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    # Rolled back; the caller should send the user to log in
    AUTH_REQUIRED = "auth_required"
    # Another toggle for this post was still in flight
    IGNORED = "ignored"


class LikeSyncController:
    """Client-side like state for a single post.

    Args:
        api: Client used for fetches, toggles and the stream.
        post_id: The displayed post.
        interval: Seconds between polls (and between stream reconnects).
        on_auth_required: Called when a toggle is rejected for lack of a session.
        on_error: Called with a user-facing message when a toggle fails.
    """

    def __init__(
        self,
        api: LikesApiClient,
        post_id: str,
        *,
        interval: float = DEFAULT_INTERVAL,
        on_auth_required: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self.api = api
        self.post_id = post_id
        self.interval = interval
        self.on_auth_required = on_auth_required
        self.on_error = on_error

        self.liked = False
        self.likes_count = 0
        self.state = SyncState.IDLE

        self._toggle_in_flight = False
        # Bumped when a toggle starts and when it ends; reads that overlap a toggle are stale
        self._generation = 0
        # Pushed counts read before the last confirmed toggle committed may still arrive
        self._quiet_until = 0.0
        # Identifies the current mount; unmount clears it so a pending mount bails out
        self._mount: object | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def snapshot(self) -> LikeState:
        return LikeState(likes_count=self.likes_count, liked=self.liked)

    @property
    def mounted(self) -> bool:
        return self._mount is not None

    def _apply(self, remote: LikeState) -> None:
        self.liked = remote.liked
        self.likes_count = remote.likes_count

    async def refresh(self) -> bool:
        """Fetch the server state and show it, unless a toggle got in the way.

        Returns:
            True if the fetched state was applied.
        """
        if self._toggle_in_flight:
            return False

        generation = self._generation
        self.state = SyncState.SYNCING
        try:
            remote = await self.api.get_state(self.post_id)
        except (AuthorizationError, ApiRequestError, pydantic.ValidationError) as e:
            logger.debug("Like refresh for post %s failed: %s", self.post_id, e)
            return False
        finally:
            if self.state is SyncState.SYNCING:
                self.state = SyncState.IDLE

        if generation != self._generation:
            logger.debug("Discarding stale like state for post %s", self.post_id)
            return False
        self._apply(remote)
        return True

    def apply_count(self, likes_count: int) -> bool:
        """Show a pushed like count.

        Counts are ignored while a toggle is in flight and for one interval
        after a toggle is confirmed, since the server may have read them
        before the toggle committed.
        """
        if self._toggle_in_flight or time.monotonic() < self._quiet_until:
            return False
        self.likes_count = max(0, likes_count)
        return True

    async def toggle(self) -> ToggleOutcome:
        """Flip the like locally, then confirm it with the server.

        The count moves by one immediately (never below zero). On success
        the server's ``liked`` and ``likesCount`` replace the local guess; on
        any failure the pre-toggle values are restored exactly.
        """
        if self._toggle_in_flight:
            return ToggleOutcome.IGNORED

        previous_liked = self.liked
        previous_count = self.likes_count

        self._toggle_in_flight = True
        self._generation += 1
        self.state = SyncState.OPTIMISTIC_PENDING
        self.liked = not previous_liked
        self.likes_count = max(0, previous_count + (1 if self.liked else -1))

        try:
            remote = await self.api.toggle(self.post_id)
        except AuthorizationError:
            self.liked, self.likes_count = previous_liked, previous_count
            logger.info("Like toggle for post %s needs a session", self.post_id)
            if self.on_error is not None:
                self.on_error(LOGIN_REQUIRED_MESSAGE)
            if self.on_auth_required is not None:
                self.on_auth_required()
            return ToggleOutcome.AUTH_REQUIRED
        except (ApiRequestError, pydantic.ValidationError) as e:
            self.liked, self.likes_count = previous_liked, previous_count
            logger.warning("Like toggle for post %s failed: %s", self.post_id, e)
            if self.on_error is not None:
                message = e.message if isinstance(e, ApiRequestError) else ""
                self.on_error(message or TOGGLE_FAILED_MESSAGE)
            return ToggleOutcome.ROLLED_BACK
        finally:
            self._toggle_in_flight = False
            self._generation += 1
            self.state = SyncState.IDLE

        self._apply(remote)
        self._quiet_until = time.monotonic() + self.interval
        return ToggleOutcome.CONFIRMED

    async def mount(self, *, use_stream: bool = False) -> None:
        """Fetch once, then keep the counter fresh in the background.

        Args:
            use_stream: Follow the server-sent stream instead of polling.
        """
        if self._mount is not None:
            return
        mount = self._mount = object()
        await self.refresh()
        if self._mount is not mount:
            # Unmounted while the first fetch was in flight
            return
        loop = self._follow_stream() if use_stream else self._poll()
        self._task = asyncio.create_task(loop, name=f"like-sync-{self.post_id}")

    async def unmount(self) -> None:
        """Stop background updates. Safe to call more than once."""
        self._mount = None
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.refresh()

    async def _follow_stream(self) -> None:
        while True:
            try:
                async for event in self.api.stream_counts(self.post_id):
                    self.apply_count(event.likes_count)
            except ApiRequestError as e:
                logger.warning("Like stream for post %s dropped: %s", self.post_id, e)
            await asyncio.sleep(self.interval)
