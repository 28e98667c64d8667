"""Library for managing compiled time zones.

A store is the single place time zones are loaded from. It compiles a zone
from rule source the first time the zone is requested, keeps the result in
memory for the lifetime of the store, and optionally persists it to a cache
directory so that other processes (or later runs) can skip compilation.

Compiled entries on disk are tagged with the version of the rule source
they were built from. An entry built from another version is recompiled and
replaced, and an entry that fails validation is treated as corrupt and
rebuilt, so a stale or damaged cache is never returned.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import logging
import os
import pathlib
import tempfile
import threading

from pydantic import BaseModel, ValidationError, model_validator

from .exceptions import CacheCorruptionError, InvalidOffsetError, UnknownTimeZoneError
from .timezone import FixedTimeZone, Leaf, TimeZone, Transition, VariableTimeZone
from .tzsource.compiler import DEFAULT_MAX_YEAR, check_max_year, compile_zone
from .tzsource.source import TzSource
from .types.utc_offset import UtcOffset

_LOGGER = logging.getLogger(__name__)


__all__ = [
    "CompiledZoneEntry",
    "TimeZoneStore",
    "read_entry",
    "write_entry",
]

CACHE_FORMAT_VERSION = 1
"""Version of the layout of cache entries, bumped on incompatible changes."""

_ENTRY_SUFFIX = ".json"


class TransitionRecord(BaseModel):
    """A serialized transition."""

    instant: int
    abbreviation: str
    std: int
    dst: int


def _checksum(records: list[TransitionRecord]) -> str:
    """Return a digest of the transitions in a canonical form."""
    payload = json.dumps(
        [record.model_dump() for record in records],
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CompiledZoneEntry(BaseModel):
    """The persisted form of a compiled time zone."""

    format_version: int
    """Layout version of the entry, see CACHE_FORMAT_VERSION."""

    zone_name: str
    """The name the zone was requested with."""

    rule_version: str
    """The version of the rule source the zone was compiled from."""

    max_year: int
    """The last year rules were expanded for."""

    horizon: int | None = None
    """Instant after which no transitions were computed, if any."""

    checksum: str
    """Digest of the transitions used to detect a damaged entry."""

    transitions: list[TransitionRecord]

    @model_validator(mode="after")
    def verify_checksum(self) -> CompiledZoneEntry:
        """Verify the transitions match the recorded checksum."""
        if _checksum(self.transitions) != self.checksum:
            raise ValueError("Checksum of transitions does not match")
        return self

    @classmethod
    def from_timezone(
        cls, timezone: VariableTimeZone, rule_version: str, max_year: int
    ) -> CompiledZoneEntry:
        """Create a new entry for a compiled time zone."""
        records = [
            TransitionRecord(
                instant=transition.instant,
                abbreviation=transition.leaf.abbreviation,
                std=transition.leaf.offset.std,
                dst=transition.leaf.offset.dst,
            )
            for transition in timezone.transitions
        ]
        return cls(
            format_version=CACHE_FORMAT_VERSION,
            zone_name=timezone.name,
            rule_version=rule_version,
            max_year=max_year,
            horizon=timezone.horizon,
            checksum=_checksum(records),
            transitions=records,
        )

    def to_timezone(self) -> VariableTimeZone:
        """Return the time zone described by this entry."""
        return VariableTimeZone(
            self.zone_name,
            tuple(
                Transition(
                    record.instant,
                    Leaf(record.abbreviation, UtcOffset(record.std, record.dst)),
                )
                for record in self.transitions
            ),
            self.horizon,
        )


def read_entry(path: pathlib.Path, zone_name: str) -> CompiledZoneEntry:
    """Read and validate a cache entry for a zone."""
    try:
        entry = CompiledZoneEntry.model_validate_json(path.read_bytes())
    except (ValidationError, ValueError) as err:
        raise CacheCorruptionError(f"Invalid cache entry for {zone_name}: {path}") from err
    if entry.zone_name != zone_name:
        raise CacheCorruptionError(
            f"Cache entry {path} is for {entry.zone_name}, expected {zone_name}"
        )
    return entry


def write_entry(path: pathlib.Path, entry: CompiledZoneEntry) -> None:
    """Atomically write a cache entry.

    The entry is written to a temporary file in the same directory and then
    renamed over the destination, so readers see either the old or the new
    entry and never a partial one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
            tmp_file.write(entry.model_dump_json())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


class TimeZoneStore:
    """A cache of time zones compiled from a rule source.

    Zones already in memory are returned without locking. The first request
    for a zone takes a lock specific to that zone, so that concurrent
    requests wait for a single compilation instead of repeating it.
    """

    def __init__(
        self,
        source: TzSource,
        cache_dir: str | pathlib.Path | None = None,
        max_year: int = DEFAULT_MAX_YEAR,
    ) -> None:
        """Initialize TimeZoneStore."""
        check_max_year(max_year)
        self._source = source
        self._cache_dir = pathlib.Path(cache_dir) if cache_dir is not None else None
        self._max_year = max_year
        self._zones: dict[str, VariableTimeZone] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    @property
    def source(self) -> TzSource:
        """Return the rule source zones are compiled from."""
        return self._source

    @property
    def max_year(self) -> int:
        """Return the last year rules are expanded for."""
        return self._max_year

    def load_or_compile(self, name: str) -> VariableTimeZone:
        """Return the compiled time zone, compiling it at most once."""
        if (timezone := self._zones.get(name)) is not None:
            return timezone
        self._source.resolve_link(name)
        with self._lock:
            key_lock = self._key_locks.setdefault(name, threading.Lock())
        with key_lock:
            if (timezone := self._zones.get(name)) is not None:
                return timezone
            timezone = self._load(name)
            self._zones[name] = timezone
        return timezone

    def timezone(self, name: str) -> TimeZone:
        """Return a time zone by name.

        Canonical fixed offset names like UTC+04:30 that the rule source does
        not define are parsed directly. Zones with a single transition are
        returned as a FixedTimeZone carrying the requested name.
        """
        if name not in self._source:
            try:
                return FixedTimeZone.parse(name)
            except InvalidOffsetError:
                raise
            except ValueError as err:
                raise UnknownTimeZoneError(
                    f"Unable to find time zone in rule source: {name}"
                ) from err
        timezone = self.load_or_compile(name)
        if len(timezone.transitions) == 1:
            return FixedTimeZone(timezone.transitions[0].leaf, name)
        return timezone

    def zone_names(self) -> list[str]:
        """Return the sorted names of all zones and links in the rule source."""
        return self._source.zone_names()

    def invalidate(self) -> None:
        """Forget the zones held in memory."""
        with self._lock:
            self._zones = {}

    def _entry_path(self, name: str) -> pathlib.Path | None:
        if self._cache_dir is None:
            return None
        parts = name.split("/")
        if any(part in ("", ".", "..") or "\\" in part for part in parts):
            raise UnknownTimeZoneError(f"Invalid time zone name: {name}")
        return self._cache_dir.joinpath(*parts[:-1], parts[-1] + _ENTRY_SUFFIX)

    def _is_current(self, entry: CompiledZoneEntry) -> bool:
        return (
            entry.format_version == CACHE_FORMAT_VERSION
            and entry.rule_version == self._source.version
            and entry.max_year == self._max_year
        )

    def _read_cached(self, name: str, path: pathlib.Path) -> VariableTimeZone | None:
        try:
            entry = read_entry(path, name)
            if not self._is_current(entry):
                _LOGGER.debug(
                    "Cache entry for %s is stale (rule version %s, max year %d)",
                    name,
                    entry.rule_version,
                    entry.max_year,
                )
                return None
            try:
                return entry.to_timezone()
            except ValueError as err:
                raise CacheCorruptionError(f"Invalid transitions in cache entry {path}") from err
        except CacheCorruptionError as err:
            _LOGGER.warning("Recompiling %s: %s", name, err)
            return None

    def _load(self, name: str) -> VariableTimeZone:
        path = self._entry_path(name)
        if path is not None and path.is_file():
            if (timezone := self._read_cached(name, path)) is not None:
                _LOGGER.debug("Loaded %s from cache %s", name, path)
                return timezone

        timezone = compile_zone(name, self._source, self._max_year)
        if path is not None:
            entry = CompiledZoneEntry.from_timezone(
                timezone, self._source.version, self._max_year
            )
            try:
                write_entry(path, entry)
            except OSError as err:
                _LOGGER.warning("Unable to write cache entry %s: %s", path, err)
            else:
                _LOGGER.debug("Wrote cache entry %s", path)
        return timezone
