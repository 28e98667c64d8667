"""Library for compiling tz source rules into a table of transitions.

Each era of a zone contributes a transition at its start. Eras that
reference a rule set additionally contribute a transition for every
occurrence of those rules between the start of the era and its UNTIL time.
Rules recur yearly, so expansion stops at a horizon: the start of the year
after max_year. Zones whose rules still recur at the horizon keep it so that
callers can tell the table was cut short.

The conversion of rule times to UTC follows zic: a wall clock time is
converted using the standard offset plus the time saved by the rule in
effect just before it, a standard time with the standard offset only, and
a universal time is used as is.
"""

from __future__ import annotations

import datetime
import heapq
import logging
from collections.abc import Iterator

from tzresolve.exceptions import RuleParseError
from tzresolve.timezone import Leaf, Transition, VariableTimeZone
from tzresolve.types.utc_offset import UtcOffset, format_offset
from tzresolve.util import MIN_INSTANT, from_instant

from .model import Rule, ZoneEra
from .reader import parse_rules, parse_zone
from .source import TzSource
from .tz_rule import TimeKind

__all__ = [
    "DEFAULT_MAX_YEAR",
    "check_max_year",
    "compile_zone",
    "horizon_instant",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_YEAR = 2037
"""The last year that rule occurrences are computed for by default."""

_SECONDS_PER_DAY = 86400
_EPOCH_ORDINAL = datetime.date(1970, 1, 1).toordinal()


def _day_seconds(value: datetime.date) -> int:
    """Return the instant of midnight at the start of a date."""
    return (value.toordinal() - _EPOCH_ORDINAL) * _SECONDS_PER_DAY


def check_max_year(max_year: int) -> None:
    """Raise ValueError if rules can not be expanded through the year."""
    if not 1 <= max_year < datetime.MAXYEAR:
        raise ValueError(
            f"max_year must be between 1 and {datetime.MAXYEAR - 1}: {max_year}"
        )


def horizon_instant(max_year: int) -> int:
    """Return the instant after which no transitions are computed."""
    return _day_seconds(datetime.date(max_year + 1, 1, 1))


def _to_utc(local: int, kind: TimeKind, std_offset: int, save: int) -> int:
    """Convert a rule time to UTC using the offsets in effect before it."""
    if kind == TimeKind.UTC:
        return local
    if kind == TimeKind.STANDARD:
        return local - std_offset
    return local - std_offset - save


def _format_abbreviation(era: ZoneEra, save: int, letters: str) -> str:
    """Build the abbreviation of an era for the time saved and rule letters."""
    fmt = era.format
    if "/" in fmt:
        std, dst = fmt.split("/", 1)
        return dst if save else std
    if "%s" in fmt:
        return fmt.replace("%s", letters)
    if "%z" in fmt:
        return fmt.replace(
            "%z", format_offset(era.std_offset + save, separator="", compact=True)
        )
    return fmt


def _leaf(era: ZoneEra, save: int, letters: str) -> Leaf:
    return Leaf(_format_abbreviation(era, save, letters), UtcOffset(era.std_offset, save))


def _until_instant(era: ZoneEra, save: int) -> int | None:
    """Return the UTC instant an era ends given the time saved at that point."""
    if (until := era.until) is None:
        return None
    local = _day_seconds(until.day.as_date(until.year, until.month)) + until.time.seconds
    return _to_utc(local, until.time.kind, era.std_offset, save)


def _default_letters(rules: list[Rule]) -> str:
    """Return the letters of the earliest standard time rule.

    These apply at the start of an era when no rule has occurred yet.
    """
    standard = [rule for rule in rules if rule.save == 0]
    if not standard:
        return ""
    earliest = min(
        standard, key=lambda rule: (rule.from_year is not None, rule.from_year or 0)
    )
    return earliest.letters


def _rule_occurrences(rule: Rule, start_year: int, end_year: int) -> Iterator[tuple[int, Rule]]:
    """Yield the local time of each yearly occurrence of a rule, in order."""
    first = start_year if rule.from_year is None else max(rule.from_year, start_year)
    last = end_year if rule.to_year is None else min(rule.to_year, end_year)
    for year in range(first, last + 1):
        day = rule.day.as_date(year, rule.month)
        yield _day_seconds(day) + rule.at.seconds, rule


class _ZoneCompiler:
    """Accumulates the transitions of a single zone across its eras."""

    def __init__(self, source: TzSource, max_year: int) -> None:
        self._source = source
        self._max_year = max_year
        self._horizon = horizon_instant(max_year)
        self._rules: dict[str, list[Rule]] = {}
        self.transitions: list[Transition] = []
        self.truncated = False

    def _lookup_rules(self, era: ZoneEra, zone_name: str) -> list[Rule]:
        name = era.rules
        assert isinstance(name, str)
        if name not in self._rules:
            if (lines := self._source.data.rules.get(name)) is None:
                line = era.line
                raise RuleParseError(
                    f"Zone {zone_name} references undefined rule {name}",
                    filename=line.filename if line else None,
                    lineno=line.lineno if line else None,
                    line=line.text if line else None,
                )
            self._rules[name] = parse_rules(name, lines)
        return self._rules[name]

    def _emit(self, instant: int, leaf: Leaf) -> None:
        if instant > self._horizon:
            self.truncated = True
            return
        self.transitions.append(Transition(instant, leaf))

    def fixed_era(self, era: ZoneEra, start: int) -> int | None:
        """Add the single transition of an era without a rule set."""
        save = era.rules if isinstance(era.rules, int) else 0
        self._emit(start, _leaf(era, save, ""))
        return _until_instant(era, save)

    def rule_era(self, era: ZoneEra, start: int, rules: list[Rule]) -> int | None:
        """Add the transitions of an era that follows a rule set."""
        std_offset = era.std_offset
        from_years = [rule.from_year for rule in rules if rule.from_year is not None]
        if from_years:
            start_year = min(from_years)
        else:
            start_year = max(from_instant(start).year - 1, 1)
        end_year = self._max_year
        if era.until is not None:
            end_year = min(era.until.year, end_year)
        if era.until is None and any(
            rule.to_year is None or rule.to_year > self._max_year for rule in rules
        ):
            self.truncated = True

        occurrences = heapq.merge(
            *(_rule_occurrences(rule, start_year, end_year) for rule in rules),
            key=lambda item: _to_utc(item[0], item[1].at.kind, std_offset, 0),
        )
        save = 0
        letters = _default_letters(rules)
        started = False
        for local, rule in occurrences:
            instant = _to_utc(local, rule.at.kind, std_offset, save)
            if instant <= start:
                # Establishes the time saved when the era begins
                save, letters = rule.save, rule.letters
                continue
            if not started:
                self._emit(start, _leaf(era, save, letters))
                started = True
            if (end := _until_instant(era, save)) is not None and instant >= end:
                break
            if instant > self._horizon:
                self.truncated = True
                break
            save, letters = rule.save, rule.letters
            self._emit(instant, _leaf(era, save, letters))
        if not started:
            self._emit(start, _leaf(era, save, letters))
        return _until_instant(era, save)

    def compile(self, zone_name: str, eras: list[ZoneEra]) -> None:
        start = MIN_INSTANT
        for era in eras:
            try:
                if isinstance(era.rules, str):
                    end = self.rule_era(era, start, self._lookup_rules(era, zone_name))
                else:
                    end = self.fixed_era(era, start)
            except ValueError as err:
                line = era.line
                raise RuleParseError(
                    f"Unable to compile era of zone {zone_name}: {err}",
                    filename=line.filename if line else None,
                    lineno=line.lineno if line else None,
                    line=line.text if line else None,
                    detailed_error=str(err),
                ) from err
            if end is None:
                break
            start = end


def _normalize(transitions: list[Transition]) -> list[Transition]:
    """Sort out transitions sharing an instant and merge repeated leaves."""
    result: list[Transition] = []
    for transition in transitions:
        # A later transition at the same instant replaces the earlier one
        while result and result[-1].instant >= transition.instant:
            result.pop()
        if result and result[-1].leaf == transition.leaf:
            continue
        result.append(transition)
    return result


def compile_zone(
    name: str, source: TzSource, max_year: int = DEFAULT_MAX_YEAR
) -> VariableTimeZone:
    """Compile the rules of a zone into a table of transitions.

    The name may be a link, in which case the linked zone is compiled and
    the result carries the requested name.
    """
    check_max_year(max_year)
    zone_name = source.resolve_link(name)
    _LOGGER.debug("Compiling zone %s (%s) through %d", name, zone_name, max_year)
    eras = parse_zone(zone_name, source.data.zones[zone_name])
    compiler = _ZoneCompiler(source, max_year)
    compiler.compile(zone_name, eras)
    transitions = _normalize(compiler.transitions)
    horizon = horizon_instant(max_year) if compiler.truncated else None
    _LOGGER.debug("Compiled zone %s with %d transitions", name, len(transitions))
    return VariableTimeZone(name, tuple(transitions), horizon)
