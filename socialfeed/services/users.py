"""Account registration and credential checks."""

from __future__ import annotations

import logging
from typing import Any, Protocol, cast

import bcrypt
from supabase import Client

from socialfeed.errors import AuthenticationError, ConflictError, DuplicateRecordError
from socialfeed.schemas.users import UserResponse
from socialfeed.supabase_client import execute
from socialfeed.time_utils import utc_now_iso

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


class UserStorage(Protocol):
    def find_by_username(self, username: str) -> dict[str, Any] | None: ...

    def find_by_id(self, user_id: str) -> dict[str, Any] | None: ...

    def insert(self, row: dict[str, Any]) -> dict[str, Any]: ...


class UserStore:
    """Supabase-backed user rows. ``username`` is unique."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def find_by_username(self, username: str) -> dict[str, Any] | None:
        result = execute(
            self._client.table(USERS_TABLE).select("*").eq("username", username),
            "look up user",
        )
        rows = cast(list[dict[str, Any]], result.data)
        return rows[0] if rows else None

    def find_by_id(self, user_id: str) -> dict[str, Any] | None:
        result = execute(
            self._client.table(USERS_TABLE).select("*").eq("id", user_id),
            "look up user",
        )
        rows = cast(list[dict[str, Any]], result.data)
        return rows[0] if rows else None

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        result = execute(self._client.table(USERS_TABLE).insert(row), "create user")
        return cast(dict[str, Any], result.data[0])


def hash_password(password: str) -> str:
    """Return a bcrypt hash of the password."""
    secret = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    secret = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(secret, password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def to_user_response(row: dict[str, Any]) -> UserResponse:
    return UserResponse(
        id=str(row["id"]),
        username=row["username"],
        full_name=row.get("full_name"),
    )


class UserService:
    """Creates accounts and checks credentials."""

    def __init__(self, store: UserStorage) -> None:
        self._store = store

    def register(self, full_name: str, username: str, password: str) -> UserResponse:
        """Create a new account.

        Raises:
            ConflictError: The username is already taken.
            StorageError: The backend failed.
        """
        if self._store.find_by_username(username) is not None:
            raise ConflictError("Username already in use")

        now = utc_now_iso()
        try:
            row = self._store.insert(
                {
                    "username": username,
                    "password_hash": hash_password(password),
                    "full_name": full_name,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        except DuplicateRecordError as e:
            raise ConflictError("Username already in use") from e

        logger.info("Registered user %s (id=%s)", username, row["id"])
        return to_user_response(row)

    def authenticate(self, username: str, password: str) -> UserResponse:
        """Return the user whose credentials match.

        Raises:
            AuthenticationError: Unknown username or wrong password.
            StorageError: The backend failed.
        """
        row = self._store.find_by_username(username)
        if row is None or not row.get("password_hash"):
            raise AuthenticationError("Invalid credentials")
        if not verify_password(password, row["password_hash"]):
            raise AuthenticationError("Invalid credentials")

        logger.info("User %s logged in", username)
        return to_user_response(row)

    def get_user(self, user_id: str) -> UserResponse | None:
        row = self._store.find_by_id(user_id)
        return to_user_response(row) if row is not None else None
