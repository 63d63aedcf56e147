"""Timestamps for wipe results. Always timezone-aware UTC."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (never the naive utcnow())."""
    return datetime.now(UTC)
