"""Like schemas."""

from datetime import datetime

from pydantic import Field

from socialfeed.schemas.base import CamelModel


class LikeRecord(CamelModel):
    """Persisted fact that a user likes a post."""

    id: str
    post_id: str
    user_id: str
    created_at: datetime


class LikeState(CamelModel):
    """Like count for a post plus whether the requester likes it."""

    likes_count: int = Field(ge=0)
    liked: bool = False


class LikeToggleRequest(CamelModel):
    """Request body for toggling a like."""

    post_id: str = Field(min_length=1)


class LikeCountEvent(CamelModel):
    """Payload of one server-sent like count event."""

    post_id: str
    likes_count: int
