"""Supabase client initialization and helpers."""

from __future__ import annotations

import logging
import threading
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from socialfeed.config import get_settings
from socialfeed.errors import DuplicateRecordError, StorageError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class SupabaseHandle:
    """Process-wide Supabase client created lazily, exactly once.

    The first caller builds the client under a lock; concurrent first callers
    wait on that lock and then share the same instance.
    """

    def __init__(self) -> None:
        self._client: Client | None = None
        self._lock = threading.Lock()

    def get(self) -> Client:
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                settings = get_settings()
                self._client = create_client(
                    settings.supabase_url, settings.effective_supabase_secret_key
                )
                logger.info("Supabase client initialized for %s", settings.supabase_url)
            return self._client

    def reset(self) -> None:
        """Drop the cached client so the next ``get`` builds a new one."""
        with self._lock:
            self._client = None


supabase_handle = SupabaseHandle()


def get_supabase_client() -> Client:
    """Return the shared Supabase client."""
    return supabase_handle.get()


def execute(query: Any, action: str) -> Any:
    """Run a PostgREST query, translating backend failures to StorageError.

    Args:
        query: A built Supabase query (anything with ``.execute()``).
        action: Short description used in logs and error messages.

    Returns:
        The Supabase API response.

    Raises:
        DuplicateRecordError: The write collided with a unique key.
        StorageError: Any other API or transport failure.
    """
    try:
        return query.execute()
    except APIError as e:
        if e.code == UNIQUE_VIOLATION:
            raise DuplicateRecordError(f"Duplicate record while trying to {action}") from e
        logger.exception("Supabase API error while trying to %s", action)
        raise StorageError(f"Failed to {action}") from e
    except httpx.HTTPError as e:
        logger.exception("Supabase unreachable while trying to %s", action)
        raise StorageError(f"Failed to {action}") from e
