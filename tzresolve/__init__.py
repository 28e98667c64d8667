"""
.. include:: ../README.md
"""

__all__ = [
    "exceptions",
    "resolve",
    "store",
    "timezone",
    "types",
    "tzinfo",
    "tzsource",
    "util",
    "zoned_datetime",
]
