"""A Timeline is a set of events on a calendar.

A timeline can be used to scan ranges of events, including the expanded
occurrences of recurring series, like returning all events happening today,
this week, or between two instants.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import datetime

from dateutil.relativedelta import MO, relativedelta

from .event import Event, Occurrence, RecurringEvent
from .iter import SpanTimeline
from .recur_adapter import merge_and_expand_items
from .timezone import TimezoneResolver
from .util import local_timezone

__all__ = ["Timeline", "day_range", "week_range"]


def day_range(
    day: datetime.date, tzinfo: datetime.tzinfo
) -> tuple[datetime.datetime, datetime.datetime]:
    """Return the first and last instant of a local calendar day."""
    return (
        datetime.datetime.combine(day, datetime.time.min, tzinfo=tzinfo),
        datetime.datetime.combine(day, datetime.time.max, tzinfo=tzinfo),
    )


def week_range(
    day: datetime.date, tzinfo: datetime.tzinfo
) -> tuple[datetime.datetime, datetime.datetime]:
    """Return the first and last instant of the Monday to Sunday week of a day."""
    monday = day + relativedelta(weekday=MO(-1))
    sunday = monday + datetime.timedelta(days=6)
    return day_range(monday, tzinfo)[0], day_range(sunday, tzinfo)[1]


class Timeline:
    """A view of single events and occurrences of series ordered by start time."""

    def __init__(
        self,
        items: Iterable[Event | RecurringEvent],
        resolver: TimezoneResolver | None = None,
    ) -> None:
        """Initialize Timeline."""
        self._items = list(items)
        self._resolver = resolver or TimezoneResolver()

    def overlapping(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> Iterator[Event | Occurrence]:
        """Return an iterator containing events active during the timespan.

        Both the start and the end are inclusive.
        """
        timeline = SpanTimeline(
            merge_and_expand_items(self._items, start, end, self._resolver)
        )
        return timeline.overlapping(start, end)

    def on_date(
        self, day: datetime.date, tzinfo: datetime.tzinfo | None = None
    ) -> Iterator[Event | Occurrence]:
        """Return an iterator containing all events active on the specified day."""
        return self.overlapping(*day_range(day, tzinfo or local_timezone()))

    def week_of(
        self, day: datetime.date, tzinfo: datetime.tzinfo | None = None
    ) -> Iterator[Event | Occurrence]:
        """Return an iterator containing all events active in the week of the day."""
        return self.overlapping(*week_range(day, tzinfo or local_timezone()))

    def today(
        self, tzinfo: datetime.tzinfo | None = None
    ) -> Iterator[Event | Occurrence]:
        """Return an iterator containing all events active today."""
        tzinfo = tzinfo or local_timezone()
        return self.on_date(datetime.datetime.now(tz=tzinfo).date(), tzinfo)

    def this_week(
        self, tzinfo: datetime.tzinfo | None = None
    ) -> Iterator[Event | Occurrence]:
        """Return an iterator containing all events active this week."""
        tzinfo = tzinfo or local_timezone()
        return self.week_of(datetime.datetime.now(tz=tzinfo).date(), tzinfo)
