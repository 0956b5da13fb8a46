"""Timestamp normalisation for backend payloads."""

from datetime import UTC, datetime


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
