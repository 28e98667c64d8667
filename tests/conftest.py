"""Test fixtures."""

from __future__ import annotations

import pathlib

import pytest

from tzresolve.store import TimeZoneStore
from tzresolve.timezone import VariableTimeZone
from tzresolve.tzsource import TzSource

TESTDATA = pathlib.Path(__file__).parent / "testdata" / "tzsource"


@pytest.fixture(name="source", scope="session")
def mock_source() -> TzSource:
    """Fixture to read the rule source used by the tests."""
    return TzSource.from_directory(TESTDATA)


@pytest.fixture(name="cache_dir")
def mock_cache_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Fixture for a cache directory that is empty at the start of a test."""
    return tmp_path / "cache"


@pytest.fixture(name="store")
def mock_store(source: TzSource, cache_dir: pathlib.Path) -> TimeZoneStore:
    """Fixture to create a store with a disk cache."""
    return TimeZoneStore(source, cache_dir=cache_dir)


@pytest.fixture(name="new_york")
def mock_new_york(store: TimeZoneStore) -> VariableTimeZone:
    """Fixture for the America/New_York time zone."""
    return store.load_or_compile("America/New_York")


@pytest.fixture(name="london")
def mock_london(store: TimeZoneStore) -> VariableTimeZone:
    """Fixture for the Europe/London time zone."""
    return store.load_or_compile("Europe/London")


@pytest.fixture(name="apia")
def mock_apia(store: TimeZoneStore) -> VariableTimeZone:
    """Fixture for the Pacific/Apia time zone."""
    return store.load_or_compile("Pacific/Apia")
