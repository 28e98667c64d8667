"""Data model for time zones compiled from rule source text.

A time zone is either a FixedTimeZone, which has a single offset that is
always in effect, or a VariableTimeZone, which is a table of transitions.
Each transition marks the UTC instant (inclusive) at which a Leaf, the pair
of abbreviation and offset, becomes active until the next transition.

All of these objects are immutable once created, so they may be shared
freely between threads.
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from .types.utc_offset import UtcOffset, format_offset
from .util import from_instant

__all__ = [
    "Leaf",
    "Transition",
    "FixedTimeZone",
    "VariableTimeZone",
    "TimeZone",
]

_FIXED_NAME_RE = re.compile(
    r"^UTC(?:(?P<sign>[+-])(?P<hour>\d{1,2})(?::?(?P<minutes>\d{2})(?::?(?P<seconds>\d{2}))?)?)?$"
)


@dataclass(frozen=True)
class Leaf:
    """The abbreviation and offset in effect over some interval of time."""

    abbreviation: str
    """The abbreviation of the zone e.g. EST, empty for a degenerate fixed zone."""

    offset: UtcOffset
    """UTC offset for this leaf."""

    def __str__(self) -> str:
        if self.abbreviation:
            return f"{self.abbreviation} ({self.offset})"
        return str(self.offset)


@dataclass(frozen=True)
class Transition:
    """An instant at which the rules for computing local time change."""

    instant: int
    """Seconds since the epoch (UTC) at which the leaf goes into effect."""

    leaf: Leaf
    """The leaf that is active from this instant until the next transition."""

    @property
    def utc_datetime(self) -> datetime.datetime:
        """Return the transition instant as a naive UTC datetime."""
        return from_instant(self.instant)


def _offset_name(seconds: int) -> str:
    """Return the canonical name for a fixed offset e.g. UTC+04:30."""
    if seconds == 0:
        return "UTC"
    return f"UTC{format_offset(seconds)}"


@dataclass(frozen=True)
class FixedTimeZone:
    """A time zone with one permanently active leaf and no transitions."""

    leaf: Leaf

    name: str = ""
    """The name of the zone, defaults to the abbreviation or offset name."""

    is_fixed = True

    def __post_init__(self) -> None:
        """Fill in a name when none was given."""
        if not self.name:
            object.__setattr__(self, "name", self._leaf_name())

    def _leaf_name(self) -> str:
        return self.leaf.abbreviation or _offset_name(self.leaf.offset.total)

    @property
    def offset(self) -> UtcOffset:
        """Return the offset of the time zone."""
        return self.leaf.offset

    @classmethod
    def from_offset(
        cls, offset: int | datetime.timedelta, abbreviation: str = ""
    ) -> FixedTimeZone:
        """Create a fixed zone from an offset in seconds or a timedelta."""
        if isinstance(offset, datetime.timedelta):
            offset = int(offset.total_seconds())
        return cls(Leaf(abbreviation, UtcOffset(std=offset)))

    @classmethod
    def parse(cls, name: str) -> FixedTimeZone:
        """Parse a canonical fixed zone name such as UTC, UTC+4 or UTC-03:30."""
        if not (match := _FIXED_NAME_RE.fullmatch(name)):
            raise ValueError(f"Expected a fixed time zone name like UTC+04:00: {name}")
        if match["sign"] is None:
            return cls.from_offset(0)
        seconds = (
            int(match["hour"]) * 3600
            + int(match["minutes"] or 0) * 60
            + int(match["seconds"] or 0)
        )
        if match["sign"] == "-":
            seconds = -seconds
        return cls.from_offset(seconds)

    def abbreviations(self) -> list[str]:
        """Return the abbreviations used by this zone."""
        return [self._leaf_name()]

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class VariableTimeZone:
    """A time zone defined by an ordered table of transitions."""

    name: str
    """The name of the zone e.g. America/New_York."""

    transitions: tuple[Transition, ...] = field(repr=False)
    """Transitions, strictly increasing by instant."""

    horizon: int | None = None
    """Instant after which no transitions were computed, if rules recur past it."""

    is_fixed = False

    def __post_init__(self) -> None:
        """Validate the transition table is non-empty and strictly increasing."""
        if not isinstance(self.transitions, tuple):
            object.__setattr__(self, "transitions", tuple(self.transitions))
        if not self.transitions:
            raise ValueError(f"Time zone {self.name} requires at least one transition")
        previous: Transition | None = None
        for transition in self.transitions:
            if previous is not None and transition.instant <= previous.instant:
                raise ValueError(
                    f"Time zone {self.name} transitions must be strictly increasing: "
                    f"{transition.utc_datetime} follows {previous.utc_datetime}"
                )
            previous = transition

    @classmethod
    def from_transitions(
        cls, name: str, transitions: Iterable[Transition], horizon: int | None = None
    ) -> VariableTimeZone:
        """Create a new VariableTimeZone from any iterable of transitions."""
        return cls(name, tuple(transitions), horizon)

    def abbreviations(self) -> list[str]:
        """Return the sorted abbreviations used anywhere in the table."""
        return sorted({t.leaf.abbreviation for t in self.transitions if t.leaf.abbreviation})

    def __str__(self) -> str:
        return self.name


TimeZone = Union[FixedTimeZone, VariableTimeZone]
"""Any time zone that can answer which leaf is active at an instant."""
