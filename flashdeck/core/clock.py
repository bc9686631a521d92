"""Clock and calendar helpers.

All instants are timezone-aware UTC; daily counters are bucketed by the UTC
calendar date ("day key").
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Protocol

_DAY_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trips)."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock(Protocol):
    """Source of the current instant and day key."""

    def now(self) -> datetime:  # pragma: no cover - interface definition
        ...

    def today_key(self) -> date:  # pragma: no cover - interface definition
        ...


class SystemClock:
    """Wall-clock implementation used in production."""

    def now(self) -> datetime:
        return utcnow()

    def today_key(self) -> date:
        return self.now().date()


def parse_day_key(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` day key, raising ``ValueError`` when malformed."""

    if isinstance(value, datetime):
        raise ValueError("day key must be a calendar date, not an instant")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DAY_KEY.match(value):
        raise ValueError(f"invalid day key: {value!r}")
    return date.fromisoformat(value)
