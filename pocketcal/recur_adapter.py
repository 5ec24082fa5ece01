"""Component specific iterable functions.

This module materializes the occurrences of recurring series for a query
window and merges them with single events, so that a timeline can be
iterated in order of start time.
"""

from __future__ import annotations

from collections.abc import Iterable
import datetime
import logging

from .event import Event, Occurrence, RecurringEvent, occurrence_uid
from .iter import (
    LazySpanItem,
    MergedIterable,
    SeriesIterable,
    SpanItem,
    ValueSpanItem,
)
from .timespan import Timespan
from .timezone import TimezoneResolver
from .types.date_time import parse_offset_datetime

__all__ = [
    "RecurAdapter",
    "merge_and_expand_items",
]

_LOGGER = logging.getLogger(__name__)

ItemType = Event | Occurrence


class RecurAdapter:
    """An adapter that expands a RecurringEvent for its occurrence start times.

    This adapter is given a series, then invoked with the start of a specific
    instance. The series fields are copied to act as a flattened instance.
    """

    def __init__(self, item: RecurringEvent, resolver: TimezoneResolver) -> None:
        """Initialize the RecurAdapter."""
        self._item = item
        self._duration = item.computed_duration
        self._resolver = resolver

    def build(self, start: str) -> Occurrence:
        """Return the occurrence starting at the specified time."""
        dtstart = parse_offset_datetime(start)
        end: str | None = None
        if self._duration is not None:
            end = self._resolver.format_instant(dtstart + self._duration, self._item.tz)
        return Occurrence(
            uid=occurrence_uid(self._item.uid, start),
            series_uid=self._item.uid,
            start=start,
            end=end,
            details=self._item.details.model_copy(deep=True),
        )

    def get(self, start: str) -> SpanItem[Occurrence]:
        """Return a lazy sortable item."""
        dtstart = parse_offset_datetime(start)
        dtend = dtstart + self._duration if self._duration is not None else dtstart
        return LazySpanItem(Timespan.of(dtstart, dtend), lambda: self.build(start))

    def occurrences(
        self, range_start: datetime.datetime, range_end: datetime.datetime
    ) -> list[Occurrence]:
        """Return the occurrences of the series starting within the window."""
        return list(
            SeriesIterable(
                self.build,
                self._item.occurrence_starts(range_start, range_end, self._resolver),
            )
        )


def merge_and_expand_items(
    items: Iterable[Event | RecurringEvent],
    range_start: datetime.datetime,
    range_end: datetime.datetime,
    resolver: TimezoneResolver,
) -> Iterable[SpanItem[ItemType]]:
    """Merge single events with the expanded occurrences of series.

    Series are expanded from early enough before the window that an
    occurrence which started earlier but is still running is included.
    """
    iters: list[Iterable[SpanItem[ItemType]]] = []
    for item in items:
        if isinstance(item, Event):
            iters.append([ValueSpanItem(item.timespan, item)])
            continue
        adapter = RecurAdapter(item, resolver)
        expand_from = range_start
        if item.computed_duration is not None:
            expand_from = range_start - item.computed_duration
        _LOGGER.debug(
            "Expanding series %s from %s to %s", item.uid, expand_from, range_end
        )
        iters.append(
            SeriesIterable(
                adapter.get,
                item.occurrence_starts(expand_from, range_end, resolver),
            )
        )
    return MergedIterable(iters)
