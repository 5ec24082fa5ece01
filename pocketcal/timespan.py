"""The period of time an event or occurrence is active.

Events are compared and ordered by when they start, then by when they end.
An event without an end is active only at the instant it starts. Both ends
of a timespan are aware datetimes, so timespans in different offsets are
compared as absolute instants.
"""

from __future__ import annotations

import datetime
import functools
from typing import Any

__all__ = ["Timespan"]


@functools.total_ordering
class Timespan:
    """An absolute start and end time."""

    __slots__ = ("_start", "_end")

    def __init__(self, start: datetime.datetime, end: datetime.datetime) -> None:
        """Initialize Timespan."""
        for label, value in (("Start", start), ("End", end)):
            if value.tzinfo is None:
                raise ValueError(f"{label} time did not have a timezone: {value}")
        self._start = start
        self._end = end

    @classmethod
    def of(  # pylint: disable=invalid-name
        cls,
        start: datetime.datetime,
        end: datetime.datetime | None = None,
    ) -> Timespan:
        """Create a Timespan, where a missing end is the start instant."""
        return cls(start, start if end is None else end)

    @property
    def start(self) -> datetime.datetime:
        """Return the first instant of the timespan."""
        return self._start

    @property
    def end(self) -> datetime.datetime:
        """Return the last instant of the timespan."""
        return self._end

    @property
    def duration(self) -> datetime.timedelta:
        """Return the elapsed time between start and end."""
        return self._end - self._start

    def overlaps(self, other: Timespan) -> bool:
        """Return True if the timespans share an instant, both ends inclusive."""
        return self._start <= other.end and self._end >= other.start

    def _key(self) -> tuple[datetime.datetime, datetime.datetime]:
        return (self._start, self._end)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Timespan):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Timespan):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"Timespan({self._start.isoformat()}, {self._end.isoformat()})"
