"""Datetime helpers shared across the application."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta

__all__ = [
    "DAY",
    "as_utc",
    "coerce_instant",
    "days_between",
    "parse_datetime",
    "serialize_datetime",
]

DAY = timedelta(days=1)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC ``datetime``, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def serialize_datetime(value: datetime | None) -> str | None:
    """Serialise ``value`` to ISO 8601 in UTC."""
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


def parse_datetime(value: str | None, *, assume_utc: bool = False) -> datetime | None:
    """Parse an ISO 8601 string into a ``datetime`` instance."""
    if value is None:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None and assume_utc:
        return parsed.replace(tzinfo=UTC)
    return parsed


def coerce_instant(value: object) -> datetime | None:
    """Best-effort conversion of a stored instant into an aware UTC datetime.

    Accepts ``datetime`` objects, ISO 8601 strings, epoch milliseconds and
    Firestore style ``{"seconds": ..., "nanoseconds": ...}`` mappings. Any
    value that cannot be interpreted yields ``None`` instead of raising, so
    a malformed field behaves exactly like a missing one.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            return as_utc(value)
        if isinstance(value, str):
            if not value.strip():
                return None
            parsed = parse_datetime(value, assume_utc=True)
            return as_utc(parsed) if parsed is not None else None
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        if isinstance(value, Mapping):
            seconds = value.get("seconds", value.get("_seconds"))
            nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
            if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
                return None
            if isinstance(nanos, bool) or not isinstance(nanos, (int, float)):
                return None
            return datetime.fromtimestamp(seconds + nanos / 1e9, tz=UTC)
    except (ValueError, OverflowError, OSError):
        return None
    return None


def days_between(start: datetime, end: datetime) -> float:
    """Return the signed, fractional number of days from ``start`` to ``end``."""
    return (as_utc(end) - as_utc(start)) / DAY
