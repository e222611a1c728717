"""Python client for the social feed API and the like counter sync controller."""

from socialfeed.client.api import ApiRequestError, LikesApiClient
from socialfeed.client.sync import LikeSyncController, SyncState, ToggleOutcome

__all__ = [
    "ApiRequestError",
    "LikeSyncController",
    "LikesApiClient",
    "SyncState",
    "ToggleOutcome",
]
