"""Like route handlers: state lookup, toggle and the live count stream."""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from socialfeed.auth import get_current_user_id, get_optional_user_id
from socialfeed.config import Settings, get_settings
from socialfeed.dependencies import get_like_service
from socialfeed.errors import ValidationError
from socialfeed.schemas.likes import LikeCountEvent, LikeState, LikeToggleRequest
from socialfeed.services.likes import LikeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/likes", tags=["likes"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}


def format_like_event(post_id: str, likes_count: int) -> str:
    """Render one server-sent event carrying a post's like count."""
    payload = LikeCountEvent(post_id=post_id, likes_count=likes_count)
    return f"data: {payload.model_dump_json(by_alias=True)}\n\n"


async def _like_count_events(
    service: LikeService, post_id: str, first_count: int, interval: float
) -> AsyncIterator[str]:
    """Yield the initial count, then one event per subscription tick.

    Starlette cancels this generator when the client disconnects; closing it
    also closes the subscription, so no query or write follows.
    """
    logger.info("Like stream opened for post %s", post_id)
    try:
        yield format_like_event(post_id, first_count)
        async with aclosing(
            service.subscribe(post_id, interval=interval, skip_first=True)
        ) as counts:
            async for likes_count in counts:
                yield format_like_event(post_id, likes_count)
    finally:
        logger.info("Like stream closed for post %s", post_id)


@router.get("", response_model=LikeState)
def get_likes(
    post_id: str | None = Query(default=None, alias="postId"),
    stream: str | None = Query(default=None),
    user_id: str | None = Depends(get_optional_user_id),
    service: LikeService = Depends(get_like_service),
    settings: Settings = Depends(get_settings),
) -> LikeState | StreamingResponse:
    """Return the post's like state, or stream its count when ``stream=1``.

    Anonymous readers get ``liked=false``. The stream sends the current count
    immediately and then every ``likes.stream_interval_seconds``.

    Raises:
        ValidationError: 400 if postId is missing.
    """
    if not post_id:
        raise ValidationError("postId is required")

    if stream == "1":
        # Query once up front so a dead backend fails with 500 instead of an empty stream
        first_count = service.count_likes(post_id)
        return StreamingResponse(
            _like_count_events(
                service, post_id, first_count, settings.likes.stream_interval_seconds
            ),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return service.get_state(post_id, user_id)


@router.post("", response_model=LikeState)
def toggle_like(
    body: LikeToggleRequest,
    user_id: str = Depends(get_current_user_id),
    service: LikeService = Depends(get_like_service),
) -> LikeState:
    """Toggle the current user's like on a post.

    Raises:
        AuthorizationError: 401 without a valid session.
        ValidationError: 400 on a malformed body.
    """
    return service.toggle(body.post_id, user_id)
