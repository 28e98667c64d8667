"""An implementation of tzinfo backed by a compiled time zone.

This allows compiled time zones to be used with the standard library
datetime objects. Ambiguous and non-existent local times are handled with
the fold attribute as described in PEP 495: fold=0 selects the earlier
occurrence of a repeated time, and the offset before the transition for a
time in a gap; fold=1 selects the later occurrence, and the offset after the
transition.
"""

from __future__ import annotations

import datetime

from .resolve import interpret_local, leaf_at
from .timezone import FixedTimeZone, Leaf, TimeZone

__all__ = [
    "ZoneTzInfo",
]


class ZoneTzInfo(datetime.tzinfo):
    """A tzinfo for a FixedTimeZone or VariableTimeZone."""

    def __init__(self, timezone: TimeZone) -> None:
        """Initialize ZoneTzInfo."""
        self._timezone = timezone

    @property
    def timezone(self) -> TimeZone:
        """Return the underlying time zone."""
        return self._timezone

    def _leaf(self, dt: datetime.datetime | None) -> Leaf | None:
        if isinstance(self._timezone, FixedTimeZone):
            return self._timezone.leaf
        if dt is None:
            return None
        result = interpret_local(self._timezone, dt.replace(tzinfo=None, fold=0))
        if result.candidates:
            return result.candidates[-1 if dt.fold else 0][1]
        assert result.gap is not None
        return result.gap.leaf_after if dt.fold else result.gap.leaf_before

    def utcoffset(self, dt: datetime.datetime | None) -> datetime.timedelta | None:
        """Return offset of local time from UTC, as a timedelta object."""
        if (leaf := self._leaf(dt)) is None:
            return None
        return leaf.offset.timedelta

    def dst(self, dt: datetime.datetime | None) -> datetime.timedelta | None:
        """Return the daylight saving time (DST) adjustment, if applicable."""
        if (leaf := self._leaf(dt)) is None:
            return None
        return datetime.timedelta(seconds=leaf.offset.dst)

    def tzname(self, dt: datetime.datetime | None) -> str | None:
        """Return the abbreviation in effect for the datetime."""
        if (leaf := self._leaf(dt)) is None:
            return None
        return leaf.abbreviation or self._timezone.name

    def fromutc(self, dt: datetime.datetime) -> datetime.datetime:
        """Convert a UTC datetime carrying this tzinfo to local time."""
        if dt.tzinfo is not self:
            raise ValueError("fromutc: dt.tzinfo is not self")
        utc = dt.replace(tzinfo=None)
        local = utc + leaf_at(self._timezone, utc).offset.timedelta
        fold = 0
        if not isinstance(self._timezone, FixedTimeZone):
            candidates = interpret_local(self._timezone, local).candidates
            if len(candidates) > 1 and candidates[0][0] != utc:
                fold = 1
        return local.replace(tzinfo=self, fold=fold)

    def __str__(self) -> str:
        """Return the name of the time zone."""
        return self._timezone.name

    def __repr__(self) -> str:
        """Return the string representation of the time zone."""
        return f"{self.__class__.__name__}({self._timezone.name})"
