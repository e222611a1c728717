"""User and session schemas."""

from pydantic import Field

from socialfeed.schemas.base import CamelModel


class UserResponse(CamelModel):
    """Public user profile returned by the API."""

    id: str
    username: str
    full_name: str | None = None


class LoginRequest(CamelModel):
    """Request body for logging in."""

    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=6)


class RegisterRequest(LoginRequest):
    """Request body for creating an account."""

    full_name: str = Field(min_length=3, max_length=100)


class SessionResponse(CamelModel):
    """Issued session token and the user it belongs to."""

    token: str
    user: UserResponse


class MessageResponse(CamelModel):
    """Plain acknowledgement."""

    message: str
