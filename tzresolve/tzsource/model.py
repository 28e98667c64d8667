"""Data model for the tzsource library."""

from __future__ import annotations

from dataclasses import dataclass, field

from .tz_rule import DaySpec, RuleDay, RuleTime


@dataclass(frozen=True)
class SourceLine:
    """A line of rule source text split into fields."""

    filename: str
    """The file the line was read from."""

    lineno: int
    """The 1-based line number within the file."""

    text: str
    """The original text of the line."""

    fields: tuple[str, ...]
    """Whitespace separated fields with any comment removed."""


@dataclass(frozen=True)
class Rule:
    """A recurring rule for daylight saving time changes."""

    name: str
    """The name of the rule set this rule belongs to."""

    from_year: int | None
    """First year the rule applies, None for the beginning of time."""

    to_year: int | None
    """Last year the rule applies, None if it recurs forever."""

    month: int
    """Month between 1 and 12 the rule takes effect."""

    day: DaySpec
    """Day of the month the rule takes effect."""

    at: RuleTime
    """Time of day the rule takes effect."""

    save: int
    """Seconds added to standard time while the rule is in effect."""

    letters: str
    """Variable part of the abbreviation e.g. the 'D' in EDT."""

    line: SourceLine | None = field(default=None, compare=False, repr=False)
    """The source line the rule was parsed from."""


@dataclass(frozen=True)
class Until:
    """The local time at which a zone era ends."""

    year: int
    month: int = 1
    day: DaySpec = RuleDay(1)
    time: RuleTime = RuleTime(0)


@dataclass(frozen=True)
class ZoneEra:
    """A span of time with a standard offset and optional daylight saving rules."""

    std_offset: int
    """Seconds added to UTC to get local standard time."""

    rules: str | int | None
    """A rule set name, a fixed amount of saved seconds, or None for standard time."""

    format: str
    """The format of the abbreviation e.g. E%sT, GMT/BST or %z."""

    until: Until | None = None
    """The time at which this era ends, None for the final era."""

    line: SourceLine | None = field(default=None, compare=False, repr=False)
    """The source line the era was parsed from."""


@dataclass
class TzData:
    """The results of reading rule source text, keyed by name.

    Lines are kept unparsed so that errors in a rule only affect the
    zones that reference it.
    """

    rules: dict[str, list[SourceLine]] = field(default_factory=dict)
    """Rule lines grouped by rule set name."""

    zones: dict[str, list[SourceLine]] = field(default_factory=dict)
    """Zone era lines grouped by zone name, first line included."""

    links: dict[str, str] = field(default_factory=dict)
    """Map of link name to target name."""

    def update(self, other: TzData) -> None:
        """Merge the definitions of another source into this one."""
        for name, lines in other.rules.items():
            self.rules.setdefault(name, []).extend(lines)
        self.zones.update(other.zones)
        self.links.update(other.links)
