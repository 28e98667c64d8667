"""Exceptions for tzresolve library."""

from __future__ import annotations

import datetime
from collections.abc import Sequence


class TimeZoneError(Exception):
    """Base exception for all tzresolve errors."""


class InvalidOffsetError(TimeZoneError, ValueError):
    """Exception raised when a UTC offset is not within +/- 24 hours."""


class RuleParseError(TimeZoneError):
    """Exception raised when parsing time zone rule source text.

    The 'message' attribute contains a human-readable message about the
    error that occurred. The 'filename', 'lineno' and 'line' attributes
    identify the offending source line when it is known, and 'detailed_error'
    can provide the underlying parse failure for debugging purposes.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        lineno: int | None = None,
        line: str | None = None,
        detailed_error: str | None = None,
    ) -> None:
        """Initialize the RuleParseError with a message and line context."""
        if lineno is not None:
            message = f"{message} ({filename or '<string>'}:{lineno}: {line!r})"
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.lineno = lineno
        self.line = line
        self.detailed_error = detailed_error


class UnknownTimeZoneError(TimeZoneError, KeyError):
    """Exception raised when a time zone name is not defined by the rule source."""

    def __str__(self) -> str:
        """Return the message without KeyError quoting."""
        return str(self.args[0]) if self.args else ""


class NoApplicableRuleError(TimeZoneError):
    """Exception raised when no rule of a zone applies to a time.

    This is the case for an instant before the first transition of a zone, and
    for a local time whose UTC instant is outside the range of datetime.
    """

    def __init__(self, value: datetime.datetime, timezone_name: str) -> None:
        """Initialize NoApplicableRuleError."""
        super().__init__(
            f"No time zone rule of {timezone_name} applies to {value.isoformat()}"
        )
        self.value = value
        self.timezone_name = timezone_name


class NonExistentTimeError(TimeZoneError):
    """Exception raised when a local time falls in the gap of a forward jump.

    The 'transition' attribute is the UTC instant of the transition that
    created the gap, when known.
    """

    def __init__(
        self,
        local_datetime: datetime.datetime,
        timezone_name: str,
        transition: datetime.datetime | None = None,
    ) -> None:
        """Initialize NonExistentTimeError."""
        super().__init__(
            f"Local time {local_datetime.isoformat()} does not exist in {timezone_name}"
        )
        self.local_datetime = local_datetime
        self.timezone_name = timezone_name
        self.transition = transition


class AmbiguousTimeError(TimeZoneError):
    """Exception raised when a local time occurs more than once in a zone.

    The 'candidates' attribute holds every UTC instant (naive, in UTC) the
    local time may refer to, in chronological order, so a caller can choose.
    """

    def __init__(
        self,
        local_datetime: datetime.datetime,
        timezone_name: str,
        candidates: Sequence[datetime.datetime],
    ) -> None:
        """Initialize AmbiguousTimeError."""
        super().__init__(
            f"Local time {local_datetime.isoformat()} is ambiguous in {timezone_name} "
            f"({len(candidates)} possible instants)"
        )
        self.local_datetime = local_datetime
        self.timezone_name = timezone_name
        self.candidates = list(candidates)


class CacheCorruptionError(TimeZoneError):
    """Exception raised when a persisted compiled zone fails integrity checks."""
