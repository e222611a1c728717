"""Post schemas."""

from datetime import datetime

from socialfeed.schemas.base import CamelModel


class PostResponse(CamelModel):
    """Post shown in the feed."""

    id: str
    title: str
    author: str
    description: str = ""
    created_at: datetime | None = None
