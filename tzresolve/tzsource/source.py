"""Library for loading tz source files from disk.

A source directory is laid out like the IANA tz distribution: one file per
region (africa, europe, northamerica, ...) and a 'version' file naming the
release the rules belong to. The version tags compiled zones so that a
cache built from an older release is never reused.
"""

from __future__ import annotations

import hashlib
import logging
import pathlib
from collections.abc import Iterable

from tzresolve.exceptions import UnknownTimeZoneError

from .model import TzData
from .reader import read_tzdata

__all__ = [
    "DEFAULT_REGIONS",
    "TzSource",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_REGIONS = (
    "africa",
    "antarctica",
    "asia",
    "australasia",
    "europe",
    "northamerica",
    "southamerica",
    "etcetera",
    "backward",
)

VERSION_FILE = "version"
_MAX_LINK_DEPTH = 16


def _content_version(contents: Iterable[str]) -> str:
    """Return a version string derived from the source text itself."""
    digest = hashlib.sha256()
    for content in contents:
        digest.update(content.encode("utf-8"))
    return f"sha256:{digest.hexdigest()[:16]}"


class TzSource:
    """Rule source text for a set of zones along with its version."""

    def __init__(self, data: TzData, version: str) -> None:
        """Initialize TzSource."""
        self._data = data
        self._version = version

    @property
    def data(self) -> TzData:
        """Return the unparsed source lines."""
        return self._data

    @property
    def version(self) -> str:
        """Return the version of the rule source, e.g. 2024a."""
        return self._version

    @classmethod
    def from_text(cls, text: str, version: str | None = None, filename: str = "<string>") -> TzSource:
        """Create a TzSource from a string of tz source text."""
        return cls(read_tzdata(text, filename), version or _content_version([text]))

    @classmethod
    def from_directory(
        cls, path: str | pathlib.Path, regions: Iterable[str] = DEFAULT_REGIONS
    ) -> TzSource:
        """Read the region files of a tz source directory."""
        path = pathlib.Path(path)
        data = TzData()
        contents: list[str] = []
        for region in regions:
            region_path = path / region
            if not region_path.is_file():
                _LOGGER.debug("Skipping missing region file: %s", region_path)
                continue
            content = region_path.read_text(encoding="utf-8")
            contents.append(content)
            data.update(read_tzdata(content, region))

        version_path = path / VERSION_FILE
        if version_path.is_file():
            version = version_path.read_text(encoding="utf-8").strip()
        else:
            version = _content_version(contents)
        _LOGGER.debug("Loaded tz source %s version %s", path, version)
        return cls(data, version)

    def resolve_link(self, name: str) -> str:
        """Return the name of the zone a name refers to, following links."""
        seen = [name]
        while name not in self._data.zones:
            if (target := self._data.links.get(name)) is None:
                raise UnknownTimeZoneError(f"Unable to find time zone in rule source: {seen[0]}")
            if len(seen) > _MAX_LINK_DEPTH or target in seen:
                raise UnknownTimeZoneError(f"Time zone links form a loop: {' -> '.join(seen)}")
            seen.append(target)
            name = target
        return name

    def __contains__(self, name: object) -> bool:
        """Return True if the name is a zone or link in the rule source."""
        return name in self._data.zones or name in self._data.links

    def zone_names(self) -> list[str]:
        """Return a sorted list of all zone and link names."""
        return sorted(set(self._data.zones) | set(self._data.links))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(version={self._version})"
