"""Utility methods used by multiple modules."""

from __future__ import annotations

import datetime
from collections.abc import Callable

__all__ = [
    "Clock",
    "FixedClock",
    "system_clock",
    "to_instant",
    "from_instant",
    "as_utc",
]

EPOCH = datetime.datetime(1970, 1, 1)
ONE_SECOND = datetime.timedelta(seconds=1)

MIN_INSTANT = (datetime.datetime.min - EPOCH) // ONE_SECOND
"""The earliest instant any compiled zone defines (0001-01-01T00:00:00 UTC)."""

Clock = Callable[[], datetime.datetime]
"""A source of the current time, returned as an aware datetime."""


def system_clock() -> datetime.datetime:
    """Factory method for the current time to facilitate mocking."""
    return datetime.datetime.now(tz=datetime.UTC)


class FixedClock:
    """A clock that always returns the same instant."""

    def __init__(self, value: datetime.datetime) -> None:
        """Initialize FixedClock."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.UTC)
        self._value = value

    def __call__(self) -> datetime.datetime:
        """Return the fixed instant."""
        return self._value

    def __repr__(self) -> str:
        return f"FixedClock({self._value.isoformat()})"


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Return a naive UTC datetime, converting aware values to UTC first."""
    if value.tzinfo is not None:
        return value.astimezone(datetime.UTC).replace(tzinfo=None)
    return value


def to_instant(value: datetime.datetime) -> int:
    """Convert a naive datetime to whole seconds since the epoch (floor)."""
    return (value - EPOCH) // ONE_SECOND


def from_instant(instant: int) -> datetime.datetime:
    """Convert seconds since the epoch into a naive datetime."""
    return EPOCH + datetime.timedelta(seconds=instant)
