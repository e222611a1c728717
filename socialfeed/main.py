"""Social feed FastAPI application entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from socialfeed.config import get_settings
from socialfeed.errors import SocialFeedError, StorageError
from socialfeed.routers import auth, likes, posts
from socialfeed.seed import seed_default_posts
from socialfeed.services.posts import PostStore
from socialfeed.supabase_client import get_supabase_client, supabase_handle


def _configure_logging() -> None:
    """Configure root logger based on ENV setting (dev=DEBUG, prod=INFO)."""
    settings = get_settings()
    level = logging.DEBUG if settings.env != "prod" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )


_configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    try:
        await seed_default_posts(PostStore(get_supabase_client()))
    except Exception:
        logger.warning("Seeding skipped (DB not available)")

    try:
        yield
    finally:
        supabase_handle.reset()


async def handle_social_feed_error(
    request: Request, exc: SocialFeedError
) -> JSONResponse:
    """Render application errors as ``{"message": ...}`` with their status."""
    if isinstance(exc, StorageError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def handle_request_validation_error(
    request: Request, exc: Exception
) -> JSONResponse:
    """Report malformed requests as 400 rather than FastAPI's default 422."""
    logger.debug("Invalid payload for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request payload"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Social Feed",
        description="Post feed with live like counters",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SocialFeedError, handle_social_feed_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    app.include_router(auth.router)
    app.include_router(likes.router)
    app.include_router(posts.router)

    return app


app = create_app()


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    """Return application health status."""
    return {"status": "ok"}
