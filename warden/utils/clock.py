"""Timestamp helpers — every comparison in the engine is made in UTC."""

from __future__ import annotations

from datetime import datetime, timezone

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: datetime | str | int | float) -> datetime:
    """Accept a datetime, an ISO-8601 string or epoch seconds."""
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, bool):
        raise TypeError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_aware(datetime.fromisoformat(text))
    raise TypeError(f"not a timestamp: {value!r}")


def age_in_days(then: datetime, now: datetime) -> float:
    return (ensure_aware(now) - ensure_aware(then)).total_seconds() / SECONDS_PER_DAY
