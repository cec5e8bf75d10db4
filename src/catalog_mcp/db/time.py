# src/catalog_mcp/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def from_timestamp(seconds: float) -> datetime:
    """Return a timezone-aware UTC datetime for a unix timestamp."""
    return datetime.fromtimestamp(seconds, UTC)
