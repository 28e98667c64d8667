"""Library for value types used by time zone rules."""

from .utc_offset import UtcOffset, format_offset

__all__ = [
    "UtcOffset",
    "format_offset",
]
