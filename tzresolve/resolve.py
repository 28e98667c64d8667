"""Library for resolving instants and local times against time zones.

Looking up the leaf active at a UTC instant is a binary search of the
transition table. Going the other way, from a local (civil) time to UTC, is
harder because a change of offset can make a local time occur twice (when
the clocks fall back) or not at all (when they spring forward). The local
time is interpreted against every leaf that could contain it and only the
interpretations that are consistent with the table are kept:

  - No interpretation: the local time is in a gap, NonExistentTimeError
  - One interpretation: the local time is unambiguous
  - Two or more: the local time is ambiguous and the caller must choose
    which occurrence is meant, otherwise AmbiguousTimeError

All functions here are pure and never modify the time zone.
"""

from __future__ import annotations

import bisect
import datetime
import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from .exceptions import AmbiguousTimeError, NoApplicableRuleError, NonExistentTimeError
from .timezone import FixedTimeZone, Leaf, TimeZone, Transition, VariableTimeZone
from .util import Clock, as_utc, from_instant, system_clock, to_instant

if TYPE_CHECKING:
    from .zoned_datetime import ZonedDateTime

__all__ = [
    "Disambiguate",
    "Disambiguator",
    "NonExistent",
    "LocalInterpretation",
    "TransitionInfo",
    "leaf_at",
    "transition_index",
    "interpret_local",
    "resolve_local",
    "transition_after",
    "next_transition",
    "next_transition_now",
]

_LOGGER = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400
_ONE_MICROSECOND = datetime.timedelta(microseconds=1)


class Disambiguate(str, enum.Enum):
    """Selects an occurrence of an ambiguous local time."""

    EARLIER = "earlier"
    """The first occurrence, before the clocks were set back."""

    LATER = "later"
    """The last occurrence, after the clocks were set back."""


Disambiguator = Union[bool, int, Disambiguate, None]
"""A boolean (False earlier, True later), a 1-based ordinal, or a Disambiguate."""


class NonExistent(str, enum.Enum):
    """How to resolve a local time that falls in a gap."""

    RAISE = "raise"
    """Raise NonExistentTimeError."""

    SHIFT_FORWARD = "shift_forward"
    """Resolve to the transition instant, the first valid instant after the gap."""

    SHIFT_BACKWARD = "shift_backward"
    """Resolve to the last valid instant before the gap."""


@dataclass(frozen=True)
class TransitionInfo:
    """Details about a transition between two leaves of a time zone."""

    instant: datetime.datetime
    """The UTC instant (naive) of the transition."""

    leaf_before: Leaf
    """The leaf active just before the transition."""

    leaf_after: Leaf
    """The leaf active from the transition onwards."""

    @property
    def direction(self) -> str:
        """Return Forward if clocks move ahead at the transition, else Backward."""
        if self.leaf_after.offset.total - self.leaf_before.offset.total < 0:
            return "Backward"
        return "Forward"

    @property
    def local_before(self) -> datetime.datetime:
        """Return the local time at the transition read with the previous leaf."""
        return self.instant + self.leaf_before.offset.timedelta

    @property
    def local_after(self) -> datetime.datetime:
        """Return the local time at the transition read with the new leaf."""
        return self.instant + self.leaf_after.offset.timedelta


@dataclass(frozen=True)
class LocalInterpretation:
    """The possible meanings of a local time in a time zone."""

    local_datetime: datetime.datetime

    candidates: list[tuple[datetime.datetime, Leaf]] = field(default_factory=list)
    """UTC instants (naive) and their leaves in chronological order."""

    gap: TransitionInfo | None = None
    """The transition that skipped over the local time, if it does not exist."""


def _transition_instant(transition: Transition) -> int:
    """Sort key of the transition table, shared by all searches."""
    return transition.instant


def _search(transitions: Sequence[Transition], instant: int) -> int:
    """Return the index of the first transition strictly after the instant.

    The transition in effect at the instant is the one before this index.
    """
    return bisect.bisect_right(transitions, instant, key=_transition_instant)


def transition_index(timezone: VariableTimeZone, value: datetime.datetime) -> int:
    """Return the index of the transition in effect at a UTC instant."""
    utc = as_utc(value)
    index = _search(timezone.transitions, to_instant(utc)) - 1
    if index < 0:
        raise NoApplicableRuleError(utc, timezone.name)
    return index


def leaf_at(timezone: TimeZone, value: datetime.datetime) -> Leaf:
    """Return the leaf active at a UTC instant (naive UTC or aware datetime)."""
    if isinstance(timezone, FixedTimeZone):
        return timezone.leaf
    return timezone.transitions[transition_index(timezone, value)].leaf


def _check_local(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is not None:
        raise ValueError(f"Expected a naive local time, got {value.isoformat()}")
    return value


def interpret_local(timezone: TimeZone, value: datetime.datetime) -> LocalInterpretation:
    """Return every consistent interpretation of a local time in a time zone."""
    local = _check_local(value)
    if isinstance(timezone, FixedTimeZone):
        try:
            utc = local - timezone.leaf.offset.timedelta
        except OverflowError as err:
            raise NoApplicableRuleError(local, timezone.name) from err
        return LocalInterpretation(local, [(utc, timezone.leaf)])

    transitions = timezone.transitions
    local_instant = to_instant(local)
    # Offsets are less than a day so only transitions within a day can apply
    first = max(_search(transitions, local_instant - _SECONDS_PER_DAY) - 1, 0)
    last = _search(transitions, local_instant + _SECONDS_PER_DAY) - 1

    candidates: list[tuple[datetime.datetime, Leaf]] = []
    gap: TransitionInfo | None = None
    for index in range(first, last + 1):
        transition = transitions[index]
        instant = local_instant - transition.leaf.offset.total
        if instant < transition.instant:
            if gap is None and index > 0 and not candidates:
                previous = transitions[index - 1]
                if local_instant - previous.leaf.offset.total >= transition.instant:
                    gap = TransitionInfo(
                        transition.utc_datetime, previous.leaf, transition.leaf
                    )
            continue
        if index + 1 < len(transitions) and instant >= transitions[index + 1].instant:
            continue
        try:
            utc = local - transition.leaf.offset.timedelta
        except OverflowError:
            # Outside the range of datetime
            continue
        candidates.append((utc, transition.leaf))

    if not candidates and gap is None:
        raise NoApplicableRuleError(local, timezone.name)
    return LocalInterpretation(local, candidates, None if candidates else gap)


def _select(
    local: datetime.datetime,
    timezone: TimeZone,
    candidates: list[tuple[datetime.datetime, Leaf]],
    disambiguator: Disambiguator,
) -> datetime.datetime:
    """Choose one of several interpretations of an ambiguous local time."""
    if disambiguator is None:
        raise AmbiguousTimeError(
            local, timezone.name, [instant for (instant, _) in candidates]
        )
    if isinstance(disambiguator, bool):
        return candidates[-1 if disambiguator else 0][0]
    if isinstance(disambiguator, str):
        if Disambiguate(disambiguator) == Disambiguate.LATER:
            return candidates[-1][0]
        return candidates[0][0]
    if not 1 <= disambiguator <= len(candidates):
        raise ValueError(
            f"Occurrence must be between 1 and {len(candidates)}: {disambiguator}"
        )
    return candidates[disambiguator - 1][0]


def resolve_local(
    timezone: TimeZone,
    value: datetime.datetime,
    disambiguator: Disambiguator = None,
    *,
    nonexistent: NonExistent = NonExistent.RAISE,
) -> datetime.datetime:
    """Convert a local time in a time zone to the naive UTC instant it denotes.

    The disambiguator is only consulted when the local time is ambiguous.
    """
    result = interpret_local(timezone, value)
    if not result.candidates:
        assert result.gap is not None
        if nonexistent == NonExistent.SHIFT_FORWARD:
            return result.gap.instant
        if nonexistent == NonExistent.SHIFT_BACKWARD:
            return result.gap.instant - _ONE_MICROSECOND
        raise NonExistentTimeError(result.local_datetime, timezone.name, result.gap.instant)
    if len(result.candidates) == 1:
        return result.candidates[0][0]
    _LOGGER.debug(
        "Local time %s is ambiguous in %s", result.local_datetime, timezone.name
    )
    return _select(result.local_datetime, timezone, result.candidates, disambiguator)


def transition_after(timezone: TimeZone, value: datetime.datetime) -> TransitionInfo | None:
    """Return the first transition strictly after a UTC instant, if any is known."""
    if isinstance(timezone, FixedTimeZone):
        return None
    transitions = timezone.transitions
    utc = as_utc(value)
    index = _search(transitions, to_instant(utc))
    if index == 0:
        raise NoApplicableRuleError(utc, timezone.name)
    if index >= len(transitions):
        return None
    return TransitionInfo(
        from_instant(transitions[index].instant),
        transitions[index - 1].leaf,
        transitions[index].leaf,
    )


def next_transition(zdt: ZonedDateTime) -> TransitionInfo | None:
    """Return the next transition of the zone after a ZonedDateTime."""
    return transition_after(zdt.timezone, zdt.utc_datetime)


def next_transition_now(
    timezone: TimeZone, clock: Clock = system_clock
) -> TransitionInfo | None:
    """Return the next transition of the zone after the current time."""
    return transition_after(timezone, clock())
