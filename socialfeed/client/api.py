"""Async HTTP client for the social feed API."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from socialfeed.errors import AuthorizationError, SocialFeedError
from socialfeed.schemas.likes import LikeCountEvent, LikeState
from socialfeed.schemas.users import SessionResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
GENERIC_FAILURE = "Something went wrong"


class ApiRequestError(SocialFeedError):
    """A request failed for any reason other than a missing session.

    Covers transport errors and non-success responses alike.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code or 500


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return GENERIC_FAILURE
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return GENERIC_FAILURE


class LikesApiClient:
    """Client for the ``/api`` endpoints, keeping the session cookie.

    Args:
        base_url: Backend origin, e.g. ``http://localhost:8000``.
        http_client: Optional preconfigured ``httpx.AsyncClient`` (tests pass
            one bound to an ASGI transport). Its base URL should already
            point at the backend origin.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> LikesApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(method, f"/api{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiRequestError(GENERIC_FAILURE) from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthorizationError(_error_message(response))
        if response.is_error:
            raise ApiRequestError(_error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ApiRequestError(GENERIC_FAILURE, response.status_code) from e

    async def get_state(self, post_id: str) -> LikeState:
        data = await self._request("GET", "/likes", params={"postId": post_id})
        return LikeState.model_validate(data)

    async def toggle(self, post_id: str) -> LikeState:
        data = await self._request("POST", "/likes", json={"postId": post_id})
        return LikeState.model_validate(data)

    async def login(self, username: str, password: str) -> SessionResponse:
        data = await self._request(
            "POST", "/auth/login", json={"username": username, "password": password}
        )
        return SessionResponse.model_validate(data)

    async def register(
        self, full_name: str, username: str, password: str
    ) -> SessionResponse:
        data = await self._request(
            "POST",
            "/auth/register",
            json={"fullName": full_name, "username": username, "password": password},
        )
        return SessionResponse.model_validate(data)

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def stream_counts(self, post_id: str) -> AsyncIterator[LikeCountEvent]:
        """Follow the server-sent like count stream for a post.

        Yields one event per ``data:`` message until the caller stops
        iterating or the connection drops.

        Raises:
            ApiRequestError: The stream could not be opened, broke, or sent
                a malformed event.
        """
        try:
            async with self._http.stream(
                "GET",
                "/api/likes",
                params={"postId": post_id, "stream": "1"},
                headers={"Accept": "text/event-stream"},
                timeout=httpx.Timeout(DEFAULT_TIMEOUT, read=None),
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise ApiRequestError(
                        _error_message(response), response.status_code
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    payload = json.loads(line.removeprefix("data:").strip())
                    yield LikeCountEvent.model_validate(payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Like stream for post %s failed: %s", post_id, e)
            raise ApiRequestError(GENERIC_FAILURE) from e
