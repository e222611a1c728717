"""Post feed route handlers."""

from typing import Any

from fastapi import APIRouter, Depends, Query

from socialfeed.dependencies import get_post_store
from socialfeed.schemas.posts import PostResponse
from socialfeed.services.posts import DEFAULT_FEED_LIMIT, PostStorage

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("", response_model=list[PostResponse])
def list_posts(
    limit: int = Query(default=DEFAULT_FEED_LIMIT, ge=1, le=200),
    store: PostStorage = Depends(get_post_store),
) -> list[dict[str, Any]]:
    """Return the feed, newest posts first."""
    return store.list_recent(limit)
