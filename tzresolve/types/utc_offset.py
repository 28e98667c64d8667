"""Library for parsing and encoding UTC offset values."""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass

from tzresolve.exceptions import InvalidOffsetError

__all__ = [
    "UtcOffset",
    "format_offset",
]

SECONDS_PER_DAY = 86400

UTC_OFFSET_REGEX = re.compile(
    r"^([-+])([0-9]{2})(?::?([0-9]{2})(?::?([0-9]{2}))?)?$"
)


def format_offset(seconds: int, *, separator: str = ":", compact: bool = False) -> str:
    """Render an offset in seconds as [+-]HH[:MM[:SS]].

    The minutes are always included unless compact is set, in which case
    zero minutes and seconds are omitted (as used by %z abbreviations).
    """
    sign = "-" if seconds < 0 else "+"
    seconds = abs(seconds)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    parts = [f"{sign}{hours:02}"]
    if seconds:
        parts.extend([f"{minutes:02}", f"{seconds:02}"])
    elif minutes or not compact:
        parts.append(f"{minutes:02}")
    return separator.join(parts)


@dataclass(frozen=True)
class UtcOffset:
    """Contains an offset from UTC to local time, split in standard and DST parts."""

    std: int
    """Standard offset in seconds added to UTC to determine local time."""

    dst: int = 0
    """Daylight savings adjustment in seconds on top of the standard offset."""

    def __post_init__(self) -> None:
        """Validate the offset is less than a day in either direction."""
        if abs(self.std + self.dst) >= SECONDS_PER_DAY:
            raise InvalidOffsetError(
                f"UTC offset must be less than 24 hours: {self.std + self.dst} seconds"
            )

    @property
    def total(self) -> int:
        """Return the total offset in seconds."""
        return self.std + self.dst

    @property
    def timedelta(self) -> datetime.timedelta:
        """Return the total offset as a timedelta."""
        return datetime.timedelta(seconds=self.total)

    @property
    def is_dst(self) -> bool:
        """Return True if a daylight saving adjustment is in effect."""
        return self.dst != 0

    @classmethod
    def from_timedelta(
        cls, std: datetime.timedelta, dst: datetime.timedelta | None = None
    ) -> UtcOffset:
        """Create an offset from timedelta values with whole seconds."""
        return cls(
            std=int(std.total_seconds()),
            dst=int(dst.total_seconds()) if dst is not None else 0,
        )

    @classmethod
    def parse(cls, value: str) -> UtcOffset:
        """Parse a UTC offset such as +05:30, -0800 or +01."""
        if not (match := UTC_OFFSET_REGEX.fullmatch(value.strip())):
            raise ValueError(f"Expected value to match UTC offset pattern: {value}")
        sign, hours, minutes, seconds = match.groups()
        result = int(hours) * 3600 + int(minutes or 0) * 60 + int(seconds or 0)
        if sign == "-":
            result = -result
        return cls(std=result)

    def __str__(self) -> str:
        """Serialize the offset as [+-]HH:MM[:SS]."""
        return format_offset(self.total)
