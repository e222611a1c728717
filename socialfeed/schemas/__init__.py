"""Pydantic request/response schemas for all entities."""

from socialfeed.schemas.likes import (
    LikeCountEvent,
    LikeRecord,
    LikeState,
    LikeToggleRequest,
)
from socialfeed.schemas.posts import (
    PostResponse,
)
from socialfeed.schemas.users import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    SessionResponse,
    UserResponse,
)

__all__ = [
    "LikeCountEvent",
    "LikeRecord",
    "LikeState",
    "LikeToggleRequest",
    "LoginRequest",
    "MessageResponse",
    "PostResponse",
    "RegisterRequest",
    "SessionResponse",
    "UserResponse",
]
