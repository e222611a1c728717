"""Timestamp helpers for stored records and session tokens."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string for storage columns."""
    return utc_now().isoformat()
