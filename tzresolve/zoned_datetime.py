"""A date and time in a time zone.

A ZonedDateTime is an absolute UTC instant tagged with a time zone. The leaf
of the zone in effect at that instant is kept alongside so that the local
time, offset and abbreviation are available without another lookup. The
leaf is always re-derived from the instant and zone, never from local time
fields, so every operation that produces a new ZonedDateTime keeps the two
consistent.
"""

from __future__ import annotations

import datetime
import functools
from dataclasses import dataclass
from typing import Any

from .resolve import (
    Disambiguator,
    NonExistent,
    TransitionInfo,
    leaf_at,
    next_transition,
    resolve_local,
)
from .timezone import Leaf, TimeZone
from .types.utc_offset import UtcOffset
from .util import Clock, as_utc, system_clock

__all__ = [
    "ZonedDateTime",
    "project",
]


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class ZonedDateTime:
    """An instant in time along with the time zone it is observed in."""

    utc_datetime: datetime.datetime
    """The instant as a naive datetime in UTC."""

    timezone: TimeZone
    """The time zone the instant is observed in."""

    leaf: Leaf
    """The leaf of the time zone active at the instant."""

    def __post_init__(self) -> None:
        """Verify the leaf is the one in effect at the instant."""
        if self.utc_datetime.tzinfo is not None:
            raise ValueError("ZonedDateTime requires a naive UTC datetime")
        if (expected := leaf_at(self.timezone, self.utc_datetime)) != self.leaf:
            raise ValueError(
                f"Leaf {self.leaf} is not active at {self.utc_datetime} in "
                f"{self.timezone.name}, expected {expected}"
            )

    @classmethod
    def from_utc(cls, value: datetime.datetime, timezone: TimeZone) -> ZonedDateTime:
        """Create from a UTC instant, either naive UTC or an aware datetime."""
        utc = as_utc(value)
        return cls(utc, timezone, leaf_at(timezone, utc))

    @classmethod
    def from_local(
        cls,
        value: datetime.datetime,
        timezone: TimeZone,
        disambiguator: Disambiguator = None,
        *,
        nonexistent: NonExistent = NonExistent.RAISE,
    ) -> ZonedDateTime:
        """Create from a local (civil) time in the time zone."""
        utc = resolve_local(timezone, value, disambiguator, nonexistent=nonexistent)
        return cls.from_utc(utc, timezone)

    @classmethod
    def from_datetime(cls, value: datetime.datetime, timezone: TimeZone) -> ZonedDateTime:
        """Create from an aware datetime, observed in the time zone."""
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError(f"Expected an aware datetime, got {value.isoformat()}")
        return cls.from_utc(value, timezone)

    @classmethod
    def now(cls, timezone: TimeZone, clock: Clock = system_clock) -> ZonedDateTime:
        """Return the current time in the time zone."""
        return cls.from_utc(clock(), timezone)

    @classmethod
    def today_at(
        cls,
        time: datetime.time,
        timezone: TimeZone,
        disambiguator: Disambiguator = None,
        clock: Clock = system_clock,
    ) -> ZonedDateTime:
        """Return the specified time of day on the current local date."""
        today = cls.now(timezone, clock).local_datetime.date()
        return cls.from_local(
            datetime.datetime.combine(today, time), timezone, disambiguator
        )

    @property
    def local_datetime(self) -> datetime.datetime:
        """Return the naive local time observed in the time zone."""
        return self.utc_datetime + self.leaf.offset.timedelta

    @property
    def offset(self) -> UtcOffset:
        """Return the UTC offset in effect."""
        return self.leaf.offset

    @property
    def abbreviation(self) -> str:
        """Return the abbreviation in effect e.g. EST."""
        return self.leaf.abbreviation

    def to_datetime(self) -> datetime.datetime:
        """Return an aware datetime with a fixed offset for the active leaf."""
        if self.leaf.abbreviation:
            tzinfo = datetime.timezone(self.offset.timedelta, self.leaf.abbreviation)
        else:
            tzinfo = datetime.timezone(self.offset.timedelta)
        return self.local_datetime.replace(tzinfo=tzinfo)

    def astimezone(self, timezone: TimeZone) -> ZonedDateTime:
        """Return the same instant observed in another time zone."""
        return project(self, timezone)

    def next_transition(self) -> TransitionInfo | None:
        """Return the next transition of the time zone after this instant."""
        return next_transition(self)

    def __add__(self, other: Any) -> ZonedDateTime:
        if not isinstance(other, datetime.timedelta):
            return NotImplemented
        return ZonedDateTime.from_utc(self.utc_datetime + other, self.timezone)

    __radd__ = __add__

    def __sub__(self, other: Any) -> Any:
        if isinstance(other, ZonedDateTime):
            return self.utc_datetime - other.utc_datetime
        if isinstance(other, datetime.timedelta):
            return ZonedDateTime.from_utc(self.utc_datetime - other, self.timezone)
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ZonedDateTime):
            return NotImplemented
        return self.utc_datetime == other.utc_datetime

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ZonedDateTime):
            return NotImplemented
        return self.utc_datetime < other.utc_datetime

    def __hash__(self) -> int:
        return hash(self.utc_datetime)

    def __str__(self) -> str:
        return f"{self.local_datetime.isoformat()}{self.offset}"

    def __repr__(self) -> str:
        return f"ZonedDateTime({self}, {self.timezone.name})"


def project(zdt: ZonedDateTime, timezone: TimeZone) -> ZonedDateTime:
    """Return the same instant observed in another time zone."""
    return ZonedDateTime.from_utc(zdt.utc_datetime, timezone)
