"""Library for parsing the fields of tz source rule and zone lines.

The tz source format has these line types:

Rule: Rule NAME FROM TO - IN ON AT SAVE LETTER/S
  - FROM: First year the rule applies, or 'minimum'
  - TO: Last year the rule applies, 'only' or 'maximum'
  - IN: Month the rule takes effect, e.g. Mar
  - ON: Day the rule takes effect with these formats:
      5: A fixed day of the month
      lastSun: The last Sunday of the month
      Sun>=8: The first Sunday on or after the 8th
      Sun<=25: The last Sunday on or before the 25th
  - AT: Time of day, hh[:mm[:ss]] followed by an optional suffix of
    w (wall clock, the default), s (local standard time) or u/g/z (UTC)
  - SAVE: Time added to standard time, optionally suffixed with s or d
  - LETTER/S: Variable part of the abbreviation, '-' for none

Zone: Zone NAME STDOFF RULES FORMAT [UNTIL]
  - STDOFF: Time added to UTC to get standard time
  - RULES: A rule name, '-' for standard time or a fixed amount of time saved
  - FORMAT: Abbreviation format with %s for the rule letters, a pair
    STD/DST chosen by time saved, or %z for the numeric offset
  - UNTIL: YEAR [MONTH [DAY [TIME]]] in local time when the era ends

Keywords, month and weekday names may be abbreviated to any unambiguous
prefix and are case insensitive.
"""

from __future__ import annotations

import datetime
import enum
import re
from dataclasses import dataclass
from typing import Union

from dateutil import relativedelta, rrule

__all__ = [
    "TimeKind",
    "RuleTime",
    "RuleDay",
    "RuleDate",
    "DaySpec",
    "parse_offset",
    "parse_time",
    "parse_save",
    "parse_month",
    "parse_weekday",
    "parse_day",
    "parse_year",
    "match_keyword",
]

MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

WEEKDAYS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

_HMS_RE = re.compile(
    r"^(?P<sign>-)?(?P<hour>\d+)(?::(?P<minutes>\d{1,2})(?::(?P<seconds>\d{1,2}(?:\.\d+)?))?)?$"
)
_DAY_RE = re.compile(r"^(?P<weekday>[a-zA-Z]+)(?P<op>>=|<=)(?P<day>\d{1,2})$")
_TIME_SUFFIXES = {
    "w": "w",
    "s": "s",
    "u": "u",
    "g": "u",
    "z": "u",
}


class TimeKind(str, enum.Enum):
    """Which clock an AT or UNTIL time of day is measured against."""

    WALL = "w"
    """Local wall clock time, including any daylight saving adjustment."""

    STANDARD = "s"
    """Local standard time, ignoring daylight saving adjustments."""

    UTC = "u"
    """Universal time."""


@dataclass(frozen=True)
class RuleTime:
    """A time of day, possibly beyond 24 hours or negative."""

    seconds: int
    """Seconds since midnight of the referenced day."""

    kind: TimeKind = TimeKind.WALL
    """The clock the time is measured against."""


@dataclass(frozen=True)
class RuleDay:
    """A fixed day of the month."""

    day: int

    def as_date(self, year: int, month: int) -> datetime.date:
        """Return the date of this day in the specified year and month."""
        return datetime.date(year, month, self.day)


@dataclass(frozen=True)
class RuleDate:
    """A day of the month relative to a weekday.

    When day is None this is the last weekday of the month, otherwise it is
    the first weekday on or after the day (or on or before it when
    on_or_before is set), possibly in an adjacent month.
    """

    weekday: int
    """Weekday between 0 (Monday) and 6 (Sunday)."""

    day: int | None = None
    """The reference day of month, None means the last weekday of the month."""

    on_or_before: bool = False
    """Search backwards from the reference day instead of forwards."""

    def as_date(self, year: int, month: int) -> datetime.date:
        """Return the date this rule selects in the specified year and month."""
        weekday = rrule.weekdays[self.weekday]
        if self.day is None:
            return datetime.date(year, month, 1) + relativedelta.relativedelta(
                day=31, weekday=weekday(-1)
            )
        return datetime.date(year, month, self.day) + relativedelta.relativedelta(
            weekday=weekday(-1 if self.on_or_before else +1)
        )


DaySpec = Union[RuleDay, RuleDate]


def match_keyword(value: str, keywords: list[str], minimum: int = 1) -> str:
    """Return the keyword that value unambiguously abbreviates."""
    lower = value.lower()
    if len(lower) >= minimum:
        matches = [word for word in keywords if word.lower().startswith(lower)]
        if len(matches) == 1:
            return matches[0]
        # An exact match wins over longer keywords sharing the prefix
        for word in matches:
            if word.lower() == lower:
                return word
    raise ValueError(f"Expected one of {', '.join(keywords)}: {value}")


def parse_offset(value: str) -> int:
    """Convert an offset from [-]hh[:mm[:ss]] to seconds, '-' meaning zero."""
    if value == "-":
        return 0
    if not (match := _HMS_RE.fullmatch(value)):
        raise ValueError(f"Expected value to match [-]hh[:mm[:ss]] pattern: {value}")
    seconds = (
        int(match["hour"]) * 3600
        + int(match["minutes"] or 0) * 60
        + round(float(match["seconds"] or 0))
    )
    if match["sign"]:
        return -seconds
    return seconds


def parse_time(value: str) -> RuleTime:
    """Parse an AT or UNTIL time of day with an optional w, s or u suffix."""
    kind = TimeKind.WALL
    if value and value[-1].lower() in _TIME_SUFFIXES:
        kind = TimeKind(_TIME_SUFFIXES[value[-1].lower()])
        value = value[:-1]
    if not value:
        raise ValueError("Expected a time of day before the suffix")
    return RuleTime(parse_offset(value), kind)


def parse_save(value: str) -> int:
    """Parse a SAVE amount, ignoring an explicit standard or daylight suffix."""
    if value and value[-1] in ("s", "d"):
        value = value[:-1]
    return parse_offset(value)


def parse_month(value: str) -> int:
    """Parse a month name into a month number between 1 and 12."""
    return MONTHS.index(match_keyword(value, MONTHS)) + 1


def parse_weekday(value: str) -> int:
    """Parse a weekday name into a weekday between 0 (Monday) and 6 (Sunday)."""
    return WEEKDAYS.index(match_keyword(value, WEEKDAYS, minimum=2))


def parse_day(value: str) -> DaySpec:
    """Parse the ON field of a rule or the day of an UNTIL."""
    if value.isdigit():
        day = int(value)
        if not 1 <= day <= 31:
            raise ValueError(f"Day of month out of range: {value}")
        return RuleDay(day)
    if value.lower().startswith("last"):
        return RuleDate(weekday=parse_weekday(value[4:].lstrip("-")))
    if not (match := _DAY_RE.fullmatch(value)):
        raise ValueError(f"Expected a day like 5, lastSun or Sun>=8: {value}")
    day = int(match["day"])
    if not 1 <= day <= 31:
        raise ValueError(f"Day of month out of range: {value}")
    return RuleDate(
        weekday=parse_weekday(match["weekday"]),
        day=day,
        on_or_before=match["op"] == "<=",
    )


def parse_year(value: str, previous: int | None = None) -> int | None:
    """Parse a FROM or TO year.

    The result is None for 'minimum' and 'maximum'. The previous year is
    returned for 'only', which is only valid in the TO column.
    """
    if value.lstrip("-").isdigit():
        return int(value)
    keyword = match_keyword(value, ["minimum", "maximum", "only"])
    if keyword == "only":
        if previous is None:
            raise ValueError("Year 'only' must follow a starting year")
        return previous
    return None
