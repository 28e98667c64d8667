"""Library for reading tz source files.

Reading happens in two passes. The first pass, `read_tzdata`, only splits
the text into Rule, Zone and Link lines and checks the structure of each
line. The second pass parses the fields of the rules and eras of a single
zone when that zone is compiled, so that a malformed line only breaks the
zones that depend on it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from pyparsing import (
    Optional,
    ParseException,
    ParserElement,
    QuotedString,
    Regex,
    StringEnd,
    Suppress,
    Word,
    ZeroOrMore,
    printables,
)

from tzresolve.exceptions import RuleParseError

from .model import Rule, SourceLine, TzData, Until, ZoneEra
from .tz_rule import (
    match_keyword,
    parse_day,
    parse_month,
    parse_offset,
    parse_save,
    parse_time,
    parse_year,
)

__all__ = [
    "read_tzdata",
    "parse_rule",
    "parse_rules",
    "parse_zone",
]

_LOGGER = logging.getLogger(__name__)

_LINE_TYPES = ["Rule", "Zone", "Link"]
_RULE_FIELDS = 10
_LINK_FIELDS = 3
_MAX_UNTIL_FIELDS = 4
_SAVE_RE = re.compile(r"^-?\d")


def _line_error(message: str, line: SourceLine, err: Exception | None = None) -> RuleParseError:
    return RuleParseError(
        message,
        filename=line.filename,
        lineno=line.lineno,
        line=line.text,
        detailed_error=str(err) if err else None,
    )


def create_parser() -> ParserElement:
    """Create the parser splitting a source line into fields.

    Fields are separated by whitespace and may be quoted, and a '#' outside
    of quotes starts a comment running to the end of the line.
    """
    field = QuotedString('"') | Word(printables, exclude_chars='#"')
    comment = Regex(r"#.*")
    return ZeroOrMore(field) + Suppress(Optional(comment)) + StringEnd()


_PARSER = create_parser()


def _split_fields(text: str) -> tuple[str, ...]:
    """Split a line into fields, removing comments and honoring quotes."""
    return tuple(_PARSER.parse_string(text, parse_all=True))


def _source_lines(text: str, filename: str) -> Iterable[SourceLine]:
    for lineno, raw in enumerate(text.splitlines(), start=1):
        try:
            fields = _split_fields(raw)
        except ParseException as err:
            raise RuleParseError(
                "Unable to split line into fields",
                filename=filename,
                lineno=lineno,
                line=raw,
                detailed_error=str(err),
            ) from err
        if fields:
            yield SourceLine(filename, lineno, raw, fields)


def read_tzdata(text: str, filename: str = "<string>") -> TzData:
    """Read tz source text into lines grouped by rule and zone name."""
    data = TzData()
    zone_name: str | None = None
    for line in _source_lines(text, filename):
        if zone_name is not None:
            # Continuation of the previous zone: STDOFF RULES FORMAT [UNTIL]
            if not 3 <= len(line.fields) <= 3 + _MAX_UNTIL_FIELDS:
                raise _line_error(f"Invalid continuation line for zone {zone_name}", line)
            data.zones[zone_name].append(line)
            if len(line.fields) == 3:
                zone_name = None
            continue

        try:
            line_type = match_keyword(line.fields[0], _LINE_TYPES)
        except ValueError as err:
            raise _line_error("Unknown line type", line, err) from err

        if line_type == "Rule":
            if len(line.fields) != _RULE_FIELDS:
                raise _line_error(
                    f"Rule lines require {_RULE_FIELDS} fields, found {len(line.fields)}",
                    line,
                )
            data.rules.setdefault(line.fields[1], []).append(line)
        elif line_type == "Zone":
            if not 5 <= len(line.fields) <= 5 + _MAX_UNTIL_FIELDS:
                raise _line_error("Zone lines require between 5 and 9 fields", line)
            name = line.fields[1]
            if name in data.zones:
                raise _line_error(f"Duplicate zone {name}", line)
            data.zones[name] = [line]
            if len(line.fields) > 5:
                zone_name = name
        else:
            if len(line.fields) != _LINK_FIELDS:
                raise _line_error("Link lines require 3 fields", line)
            data.links[line.fields[2]] = line.fields[1]

    if zone_name is not None:
        raise RuleParseError(
            f"Zone {zone_name} ends with an UNTIL but has no following era",
            filename=filename,
        )
    _LOGGER.debug(
        "Read %s: %d zones, %d rules, %d links",
        filename,
        len(data.zones),
        len(data.rules),
        len(data.links),
    )
    return data


def parse_rule(line: SourceLine) -> Rule:
    """Parse the fields of a Rule line."""
    (_, name, from_text, to_text, rule_type, month, day, at, save, letters) = line.fields
    try:
        if from_text.lstrip("-").isdigit():
            from_year: int | None = int(from_text)
        else:
            match_keyword(from_text, ["minimum"])
            from_year = None
        to_year = parse_year(to_text, previous=from_year)
        if rule_type not in ("-", ""):
            raise ValueError(f"Rule type is not supported: {rule_type}")
        if from_year is not None and to_year is not None and to_year < from_year:
            raise ValueError(f"Rule ends before it starts: {from_year} to {to_year}")
        return Rule(
            name=name,
            from_year=from_year,
            to_year=to_year,
            month=parse_month(month),
            day=parse_day(day),
            at=parse_time(at),
            save=parse_save(save),
            letters="" if letters == "-" else letters,
            line=line,
        )
    except ValueError as err:
        raise _line_error(f"Invalid rule {name}: {err}", line, err) from err


def parse_rules(name: str, lines: list[SourceLine]) -> list[Rule]:
    """Parse all lines of a rule set."""
    return [parse_rule(line) for line in lines]


def _parse_until(fields: tuple[str, ...]) -> Until | None:
    if not fields:
        return None
    values: dict = {"year": int(fields[0])}
    if len(fields) > 1:
        values["month"] = parse_month(fields[1])
    if len(fields) > 2:
        values["day"] = parse_day(fields[2])
    if len(fields) > 3:
        values["time"] = parse_time(fields[3])
    return Until(**values)


def _parse_era(fields: tuple[str, ...], line: SourceLine) -> ZoneEra:
    (std_offset, rules, abbr_format) = fields[:3]
    era_rules: str | int | None
    if rules == "-":
        era_rules = None
    elif _SAVE_RE.match(rules):
        era_rules = parse_save(rules)
    else:
        era_rules = rules
    return ZoneEra(
        std_offset=parse_offset(std_offset),
        rules=era_rules,
        format=abbr_format,
        until=_parse_until(fields[3:]),
        line=line,
    )


def parse_zone(name: str, lines: list[SourceLine]) -> list[ZoneEra]:
    """Parse the eras of a zone, the first line including the Zone keyword and name."""
    eras: list[ZoneEra] = []
    for index, line in enumerate(lines):
        fields = line.fields[2:] if index == 0 else line.fields
        try:
            eras.append(_parse_era(fields, line))
        except ValueError as err:
            raise _line_error(f"Invalid era of zone {name}: {err}", line, err) from err
    for previous, era in zip(eras, eras[1:]):
        if previous.until is not None and era.until is not None:
            if (era.until.year, era.until.month) < (previous.until.year, previous.until.month):
                raise _line_error(
                    f"Invalid era of zone {name}: UNTIL is earlier than the previous era",
                    era.line,  # type: ignore[arg-type]
                )
    return eras
