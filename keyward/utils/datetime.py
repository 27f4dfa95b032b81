"""Key timestamps are naive UTC throughout.

SQLite drops tzinfo on the way back, so comparing an aware value against a
stored one raises. Everything that reaches a store goes through
``as_naive_utc`` first.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Convert ``value`` to naive UTC; naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
