"""Library for compiling IANA tz source rules into transition tables."""

from .compiler import DEFAULT_MAX_YEAR, compile_zone
from .source import TzSource

__all__ = [
    "DEFAULT_MAX_YEAR",
    "TzSource",
    "compile_zone",
]
