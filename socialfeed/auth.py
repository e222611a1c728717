"""Session tokens and the cookie-based session dependencies."""

from __future__ import annotations

import logging
import time
from typing import Any

import jwt
from fastapi import Depends, Request, Response

from socialfeed.config import Settings, get_settings
from socialfeed.errors import AuthorizationError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def _require_secret(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET not configured")
    return settings.jwt_secret


def issue_session_token(user_id: str, username: str, settings: Settings) -> str:
    """Sign a session token for the user, valid for ``session_ttl_seconds``."""
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": user_id,
        "username": username,
        "iat": now,
        "exp": now + settings.session_ttl_seconds,
    }
    return jwt.encode(payload, _require_secret(settings), algorithm=JWT_ALGORITHM)


def resolve_session(token: str | None, secret: str) -> str | None:
    """Map a session token to a user id, or None for anonymous.

    A missing token, a bad signature, an expired token or one without a
    subject all resolve to None rather than raising.

    Args:
        token: Raw JWT from the session cookie.
        secret: Server-held HMAC secret.

    Returns:
        The ``sub`` claim, or None.
    """
    if not token or not secret:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Session token rejected")
        return None

    sub = payload.get("sub")
    return str(sub) if sub else None


async def get_optional_user_id(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Return the session's user id, or None for anonymous readers."""
    token = request.cookies.get(settings.session_cookie_name)
    return resolve_session(token, settings.jwt_secret)


async def get_current_user_id(
    user_id: str | None = Depends(get_optional_user_id),
) -> str:
    """Return the session's user id for write operations.

    Raises:
        AuthorizationError: 401 when there is no valid session.
    """
    if user_id is None:
        raise AuthorizationError("Unauthorized")
    return user_id


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the session cookie. Its max-age matches the token lifetime."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
