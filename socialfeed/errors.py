"""Error taxonomy shared by services, routers and the API client.

Every error carries a user-facing ``message`` and the HTTP status it maps to.
The application registers a single handler for ``SocialFeedError`` that
renders ``{"message": ...}`` with that status.
"""

from __future__ import annotations


class SocialFeedError(Exception):
    """Base class for all application errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(SocialFeedError):
    """Malformed or missing required fields."""

    status_code = 400


class AuthenticationError(SocialFeedError):
    """Bad credentials on login."""

    status_code = 401


class AuthorizationError(SocialFeedError):
    """No valid session on an operation that requires one."""

    status_code = 401


class ConflictError(SocialFeedError):
    """Duplicate unique key, e.g. a username that is already taken."""

    status_code = 409


class StorageError(SocialFeedError):
    """The storage backend failed or is unreachable."""

    status_code = 500


class DuplicateRecordError(StorageError):
    """An insert collided with a unique key."""
