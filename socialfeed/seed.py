"""Sample post seeding logic."""

import logging

from socialfeed.config import get_settings
from socialfeed.services.posts import PostStorage
from socialfeed.time_utils import utc_now_iso

logger = logging.getLogger(__name__)


async def seed_default_posts(store: PostStorage) -> int:
    """Seed sample posts from config.yaml into the database.

    Inserts any configured post whose title is not present yet and skips the
    rest.

    Returns:
        Number of posts inserted.
    """
    settings = get_settings()

    if not settings.posts:
        logger.info("No posts configured in config.yaml")
        return 0

    inserted = 0
    for post_config in settings.posts:
        if store.find_by_title(post_config.title) is not None:
            logger.debug("Post already exists: %s", post_config.title)
            continue

        store.insert(
            {
                "title": post_config.title,
                "author": post_config.author,
                "description": post_config.description,
                "created_at": utc_now_iso(),
            }
        )
        inserted += 1
        logger.info("Seeded post: %s by %s", post_config.title, post_config.author)
    return inserted
