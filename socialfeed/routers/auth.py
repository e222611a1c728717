"""Authentication route handlers."""

import logging

from fastapi import APIRouter, Depends, Response, status

from socialfeed.auth import (
    clear_session_cookie,
    get_current_user_id,
    issue_session_token,
    set_session_cookie,
)
from socialfeed.config import Settings, get_settings
from socialfeed.dependencies import get_user_service
from socialfeed.errors import AuthorizationError
from socialfeed.schemas.users import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    SessionResponse,
    UserResponse,
)
from socialfeed.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _start_session(
    response: Response, user: UserResponse, settings: Settings
) -> SessionResponse:
    token = issue_session_token(user.id, user.username, settings)
    set_session_cookie(response, token, settings)
    return SessionResponse(token=token, user=user)


@router.post("/login", response_model=SessionResponse)
def login(
    body: LoginRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> SessionResponse:
    """Check credentials and start a session.

    Raises:
        AuthenticationError: 401 on unknown user or wrong password.
    """
    user = service.authenticate(body.username, body.password)
    return _start_session(response, user, settings)


@router.post(
    "/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED
)
def register(
    body: RegisterRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> SessionResponse:
    """Create an account and start a session.

    Raises:
        ConflictError: 409 if the username is taken.
    """
    user = service.register(body.full_name, body.username, body.password)
    return _start_session(response, user, settings)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Clear the session cookie."""
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
def get_me(
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Return the current authenticated user's profile.

    Args:
        user_id: Injected by the session dependency.
    """
    user = service.get_user(user_id)
    if user is None:
        # Valid token for an account that no longer exists
        raise AuthorizationError("Unauthorized")
    return user
