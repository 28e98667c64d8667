"""Tests for the time zone data model."""

from __future__ import annotations

import datetime

import pytest

from tzresolve.timezone import FixedTimeZone, Leaf, Transition, VariableTimeZone
from tzresolve.types import UtcOffset

EST = Leaf("EST", UtcOffset(-18000))
EDT = Leaf("EDT", UtcOffset(-18000, 3600))


def test_transition_datetime() -> None:
    """Test the instant of a transition as a datetime."""
    transition = Transition(1615705200, EDT)
    assert transition.utc_datetime == datetime.datetime(2021, 3, 14, 7, 0, 0)


def test_variable_time_zone() -> None:
    """Test creating a table of transitions."""
    timezone = VariableTimeZone.from_transitions(
        "Test/Zone",
        [Transition(0, EST), Transition(1615705200, EDT)],
    )
    assert timezone.name == "Test/Zone"
    assert not timezone.is_fixed
    assert timezone.horizon is None
    assert len(timezone.transitions) == 2
    assert timezone.abbreviations() == ["EDT", "EST"]
    assert str(timezone) == "Test/Zone"


def test_variable_time_zone_coerces_transitions() -> None:
    """Test the transitions are stored as an immutable tuple."""
    timezone = VariableTimeZone("Test/Zone", [Transition(0, EST)])  # type: ignore[arg-type]
    assert isinstance(timezone.transitions, tuple)


def test_empty_transitions() -> None:
    """Test a table of transitions may not be empty."""
    with pytest.raises(ValueError, match="at least one transition"):
        VariableTimeZone("Test/Zone", ())


@pytest.mark.parametrize(
    "instants",
    [
        [0, 0],
        [10, 5],
        [0, 20, 10],
    ],
)
def test_transitions_strictly_increasing(instants: list[int]) -> None:
    """Test transitions must be in strictly increasing order."""
    transitions = tuple(
        Transition(instant, EST if i % 2 == 0 else EDT)
        for i, instant in enumerate(instants)
    )
    with pytest.raises(ValueError, match="strictly increasing"):
        VariableTimeZone("Test/Zone", transitions)


@pytest.mark.parametrize(
    ("name", "expected_offset", "expected_name"),
    [
        ("UTC", 0, "UTC"),
        ("UTC+4", 14400, "UTC+04:00"),
        ("UTC+04:30", 16200, "UTC+04:30"),
        ("UTC-0330", -12600, "UTC-03:30"),
        ("UTC+05:45:10", 20710, "UTC+05:45:10"),
        ("UTC-00:00", 0, "UTC"),
    ],
)
def test_parse_fixed_time_zone(name: str, expected_offset: int, expected_name: str) -> None:
    """Test parsing canonical fixed offset zone names."""
    timezone = FixedTimeZone.parse(name)
    assert timezone.is_fixed
    assert timezone.offset.total == expected_offset
    assert timezone.name == expected_name
    assert timezone.abbreviations() == [expected_name]


@pytest.mark.parametrize("name", ["GMT+4", "UTC+", "UTC4", "America/New_York", "utc"])
def test_parse_fixed_time_zone_invalid(name: str) -> None:
    """Test names that are not canonical fixed offset names."""
    with pytest.raises(ValueError, match="fixed time zone name"):
        FixedTimeZone.parse(name)


def test_fixed_time_zone_from_offset() -> None:
    """Test creating fixed zones from offsets."""
    timezone = FixedTimeZone.from_offset(datetime.timedelta(hours=-5))
    assert timezone.name == "UTC-05:00"
    assert timezone.leaf.abbreviation == ""

    timezone = FixedTimeZone.from_offset(3600, "CET")
    assert timezone.name == "CET"
    assert str(timezone) == "CET"
    assert timezone.offset == UtcOffset(3600)


def test_leaf_str() -> None:
    """Test the string form of a leaf."""
    assert str(EDT) == "EDT (-04:00)"
    assert str(Leaf("", UtcOffset(3600))) == "+01:00"


def test_fixed_time_zone_name() -> None:
    """Test a fixed zone keeps the name it was given."""
    timezone = FixedTimeZone(Leaf("-05", UtcOffset(-18000)), "Etc/GMT+5")
    assert timezone.name == "Etc/GMT+5"
    assert str(timezone) == "Etc/GMT+5"
    assert timezone.abbreviations() == ["-05"]
    assert timezone != FixedTimeZone(Leaf("-05", UtcOffset(-18000)))
    assert FixedTimeZone(Leaf("-05", UtcOffset(-18000))).name == "-05"
