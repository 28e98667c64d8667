"""Tests for the tzinfo implementation backed by compiled time zones."""

from __future__ import annotations

import datetime

import pytest

from tzresolve.timezone import FixedTimeZone, VariableTimeZone
from tzresolve.tzinfo import ZoneTzInfo


def test_utcoffset(new_york: VariableTimeZone) -> None:
    """Test the offset of a local time."""
    tzinfo = ZoneTzInfo(new_york)
    value = datetime.datetime(2021, 7, 1, 12, 0, 0, tzinfo=tzinfo)
    assert value.utcoffset() == datetime.timedelta(hours=-4)
    assert value.dst() == datetime.timedelta(hours=1)
    assert value.tzname() == "EDT"

    value = datetime.datetime(2021, 1, 1, 12, 0, 0, tzinfo=tzinfo)
    assert value.utcoffset() == datetime.timedelta(hours=-5)
    assert value.dst() == datetime.timedelta(0)
    assert value.tzname() == "EST"


@pytest.mark.parametrize(
    ("fold", "offset", "name"),
    [
        (0, datetime.timedelta(hours=1), "BST"),
        (1, datetime.timedelta(hours=0), "GMT"),
    ],
)
def test_ambiguous_fold(
    london: VariableTimeZone, fold: int, offset: datetime.timedelta, name: str
) -> None:
    """Test fold selects an occurrence of a repeated local time."""
    value = datetime.datetime(2021, 10, 31, 1, 30, 0, fold=fold, tzinfo=ZoneTzInfo(london))
    assert value.utcoffset() == offset
    assert value.tzname() == name


@pytest.mark.parametrize(
    ("fold", "offset", "name"),
    [
        (0, datetime.timedelta(hours=-5), "EST"),
        (1, datetime.timedelta(hours=-4), "EDT"),
    ],
)
def test_non_existent_fold(
    new_york: VariableTimeZone, fold: int, offset: datetime.timedelta, name: str
) -> None:
    """Test fold selects the offset used for a skipped local time."""
    value = datetime.datetime(2021, 3, 14, 2, 30, 0, fold=fold, tzinfo=ZoneTzInfo(new_york))
    assert value.utcoffset() == offset
    assert value.tzname() == name


@pytest.mark.parametrize(
    ("utc", "expected_fold"),
    [
        (datetime.datetime(2021, 10, 31, 0, 30, 0), 0),
        (datetime.datetime(2021, 10, 31, 1, 30, 0), 1),
        (datetime.datetime(2021, 10, 31, 2, 30, 0), 0),
    ],
)
def test_fromutc(london: VariableTimeZone, utc: datetime.datetime, expected_fold: int) -> None:
    """Test converting from UTC marks the second occurrence with fold."""
    tzinfo = ZoneTzInfo(london)
    value = utc.replace(tzinfo=datetime.timezone.utc).astimezone(tzinfo)
    assert value.fold == expected_fold
    assert value.astimezone(datetime.timezone.utc).replace(tzinfo=None) == utc


def test_fromutc_local_time(london: VariableTimeZone) -> None:
    """Test both occurrences of the repeated hour have the same wall time."""
    tzinfo = ZoneTzInfo(london)
    first = datetime.datetime(2021, 10, 31, 0, 30, 0, tzinfo=datetime.timezone.utc).astimezone(tzinfo)
    second = datetime.datetime(2021, 10, 31, 1, 30, 0, tzinfo=datetime.timezone.utc).astimezone(tzinfo)
    assert first.replace(tzinfo=None) == second.replace(tzinfo=None)
    assert first.tzname() == "BST"
    assert second.tzname() == "GMT"


def test_fromutc_requires_self(london: VariableTimeZone) -> None:
    """Test fromutc rejects datetimes with another tzinfo."""
    with pytest.raises(ValueError, match="not self"):
        ZoneTzInfo(london).fromutc(datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc))


def test_fixed_time_zone() -> None:
    """Test a tzinfo for a fixed zone."""
    tzinfo = ZoneTzInfo(FixedTimeZone.from_offset(19800))
    assert tzinfo.utcoffset(None) == datetime.timedelta(hours=5, minutes=30)
    assert tzinfo.tzname(None) == "UTC+05:30"
    value = datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc).astimezone(tzinfo)
    assert value.replace(tzinfo=None) == datetime.datetime(2021, 1, 1, 5, 30, 0)
    assert str(tzinfo) == "UTC+05:30"


def test_no_datetime(new_york: VariableTimeZone) -> None:
    """Test a variable zone has no offset without a datetime."""
    tzinfo = ZoneTzInfo(new_york)
    assert tzinfo.utcoffset(None) is None
    assert tzinfo.dst(None) is None
    assert tzinfo.tzname(None) is None
    assert tzinfo.timezone is new_york
    assert repr(tzinfo) == "ZoneTzInfo(America/New_York)"
    assert str(tzinfo) == "America/New_York"
