"""Time helpers.

Timestamps are stored as naive UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_z(value: datetime | None) -> str | None:
    """Render a naive UTC datetime as RFC 3339 with a trailing ``Z``."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="seconds") + "Z"
