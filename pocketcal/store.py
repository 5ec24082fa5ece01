"""Library for managing the lifecycle of events in a calendar.

A store is like a manager for events within a Calendar, assigning ids and
default end times, validating edits, and managing the exception dates of a
recurring series. This higher level API is a more convenient API than
working with the lower level objects directly.
"""

# pylint: disable=unnecessary-lambda

from __future__ import annotations

from collections.abc import Callable
import datetime
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .calendar import Calendar
from .event import (
    Event,
    EventDetails,
    Occurrence,
    RecurringEvent,
    StoredEvent,
    event_sort_key,
    split_occurrence_uid,
)
from .exceptions import (
    EventStoreError,
    InvalidExdateError,
    InvalidRangeError,
    StoreError,
)
from .recur_adapter import RecurAdapter
from .timeline import Timeline
from .timezone import TimezoneResolver
from .types.date_time import is_offset_datetime, parse_offset_datetime
from .util import local_timezone

_LOGGER = logging.getLogger(__name__)


__all__ = [
    "EventStore",
    "EventStoreError",
    "StoreError",
]

DEFAULT_DURATION = datetime.timedelta(hours=1)

_DETAIL_FIELDS = {"title", "place", "participants"}
_EVENT_FIELDS = {"start", "end", "tz", "rrule"}
_SKIPPED_LOCATIONS = {"details", "single", "series"}

_STORED_EVENT_ADAPTER: TypeAdapter[Event | RecurringEvent] = TypeAdapter(StoredEvent)


def _describe(err: ValidationError) -> str:
    """Return the validation errors as a single line."""
    reasons = []
    for error in err.errors():
        location = ".".join(
            str(part) for part in error["loc"] if part not in _SKIPPED_LOCATIONS
        )
        message = error["msg"].removeprefix("Value error, ")
        reasons.append(f"{location}: {message}" if location else message)
    return ", ".join(reasons)


def _parse_bound(value: str | datetime.datetime) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            raise InvalidRangeError(f"invalid range: expected a timezone: {value}")
        return value
    try:
        return parse_offset_datetime(value)
    except ValueError as err:
        raise InvalidRangeError(f"invalid range: {value!r}") from err


class EventStore:
    """An event store manages the lifecycle of events on a Calendar.

    A `pocketcal.calendar.Calendar` is a lower level object that can be
    directly manipulated to add or remove events. That is, it does not
    handle default end times, validation of edits, or the exception dates of
    a recurring series.

    Here is an example for setting up an `EventStore`:

    ```python
    from pocketcal.calendar import Calendar
    from pocketcal.store import EventStore

    calendar = Calendar()
    store = EventStore(calendar)
    series = store.create(
        "Standup",
        "2026-03-23T09:00:00+01:00",
        tz="Europe/Warsaw",
        rrule="FREQ=WEEKLY;BYDAY=MO",
    )
    ```

    A single instance of the series may be skipped:
    ```python
    store.skip(series.uid, "2026-03-30T09:00:00+02:00")
    ```
    """

    def __init__(
        self,
        calendar: Calendar,
        resolver: TimezoneResolver | None = None,
        default_duration: datetime.timedelta = DEFAULT_DURATION,
        tzinfo_fn: Callable[[], datetime.tzinfo] = lambda: local_timezone(),
    ) -> None:
        """Initialize the EventStore."""
        self._calendar = calendar
        self._resolver = resolver or TimezoneResolver()
        self._default_duration = default_duration
        self._tzinfo_fn = tzinfo_fn

    @property
    def timeline(self) -> Timeline:
        """Return a timeline view of the events in the store."""
        return self._calendar.timeline_with(self._resolver)

    def create(
        self,
        title: str,
        start: str,
        *,
        end: str | None = None,
        place: str | None = None,
        participants: list[str] | None = None,
        tz: str | None = None,
        rrule: str | None = None,
    ) -> Event | RecurringEvent:
        """Build a new event or series from field values and add it."""
        data: dict[str, Any] = {
            "kind": "single",
            "start": start,
            "details": {
                "title": title,
                "place": place,
                "participants": participants,
            },
        }
        if end is not None:
            data["end"] = end
        if tz is not None or rrule is not None:
            data.update({"kind": "series", "tz": tz, "rrule": rrule})
        return self.add(self._validate(data))

    def add(self, item: Event | RecurringEvent) -> Event | RecurringEvent:
        """Add the specified event to the calendar.

        An event without an end is given the default duration.
        """
        if item.end is None:
            item = self._validate(
                {**item.model_dump(), "end": item.start + self._default_duration}
            )
        _LOGGER.debug("Adding event: %s", item)
        self._calendar.events.append(item)
        return item

    def edit(self, uid: str, **updates: Any) -> Event | RecurringEvent:
        """Update fields of the event with the specified uid.

        Accepted fields are title, place, participants, start, end, tz and
        rrule. Setting tz and rrule on a single event turns it into a series.
        """
        if unknown := set(updates) - _DETAIL_FIELDS - _EVENT_FIELDS:
            raise EventStoreError(f"Unsupported fields for edit: {sorted(unknown)}")
        index, store_item = self._find(uid)
        data = store_item.model_dump()
        data["details"].update(
            {key: value for key, value in updates.items() if key in _DETAIL_FIELDS}
        )
        data.update(
            {key: value for key, value in updates.items() if key in _EVENT_FIELDS}
        )
        if data.get("tz") is not None or data.get("rrule") is not None:
            data["kind"] = "series"
        new_item = self._validate(data)
        _LOGGER.debug("Editing event %s: %s", uid, updates)
        self._calendar.events[index] = new_item
        return new_item

    def delete(self, uid: str, recurrence_id: str | None = None) -> None:
        """Delete the event from the calendar.

        To delete an entire series the `uid` is specified without a
        `recurrence_id`. To delete a single occurrence the `recurrence_id`
        is its start time, or the `uid` is the occurrence identifier; the
        occurrence is then added as an exception to the series.
        """
        series_uid, occurrence_start = split_occurrence_uid(uid)
        if recurrence_id is None:
            recurrence_id = occurrence_start
        if recurrence_id is not None:
            self.skip(series_uid, recurrence_id)
            return
        _, store_item = self._find(uid)
        _LOGGER.debug("Deleting event: %s", uid)
        self._calendar.events.remove(store_item)

    def get(self, uid: str) -> Event | RecurringEvent:
        """Return the event with the specified uid."""
        return self._find(uid)[1]

    def list(self) -> list[Event | RecurringEvent]:
        """Return every stored event and series ordered by start."""
        return sorted(self._calendar.events, key=event_sort_key)

    def list_range(
        self,
        start: str | datetime.datetime,
        end: str | datetime.datetime,
    ) -> list[Event | Occurrence]:
        """Return events and occurrences overlapping the inclusive window."""
        return list(self.timeline.overlapping(_parse_bound(start), _parse_bound(end)))

    def today(self, now: datetime.datetime | None = None) -> list[Event | Occurrence]:
        """Return events and occurrences active on the local day of `now`."""
        tzinfo = self._tzinfo_fn()
        now = now or datetime.datetime.now(tz=tzinfo)
        return list(self.timeline.on_date(now.astimezone(tzinfo).date(), tzinfo))

    def week(self, now: datetime.datetime | None = None) -> list[Event | Occurrence]:
        """Return events and occurrences active in the week of `now`.

        Weeks start on Monday and end on Sunday.
        """
        tzinfo = self._tzinfo_fn()
        now = now or datetime.datetime.now(tz=tzinfo)
        return list(self.timeline.week_of(now.astimezone(tzinfo).date(), tzinfo))

    def occurrences(
        self,
        uid: str,
        start: str | datetime.datetime,
        end: str | datetime.datetime,
    ) -> list[str]:
        """Return the start of every instance of the series in the inclusive window."""
        return self._series(uid).occurrence_starts(start, end, self._resolver)

    def occurrence_events(
        self,
        uid: str,
        start: str | datetime.datetime,
        end: str | datetime.datetime,
    ) -> list[Occurrence]:
        """Return every instance of the series in the inclusive window."""
        return RecurAdapter(self._series(uid), self._resolver).occurrences(
            _parse_bound(start), _parse_bound(end)
        )

    def skip(self, uid: str, recurrence_id: str) -> RecurringEvent:
        """Remove a single occurrence from a series by adding an exception date.

        The `recurrence_id` must be written exactly as the occurrence is
        produced by the series. Adding an existing exception has no effect.
        """
        if not is_offset_datetime(recurrence_id):
            raise InvalidExdateError(
                f"invalid exDates: must be strict ISO with offset: {recurrence_id!r}"
            )
        series = self._series(uid)
        if recurrence_id not in series.exdate:
            _LOGGER.debug("Adding exception %s to series %s", recurrence_id, uid)
            series.exdate = [*series.exdate, recurrence_id]
        return series

    def _find(self, uid: str) -> tuple[int, Event | RecurringEvent]:
        for index, item in enumerate(self._calendar.events):
            if item.uid == uid:
                return index, item
        raise EventStoreError(f"Event not found: {uid}")

    def _series(self, uid: str) -> RecurringEvent:
        item = self.get(uid)
        if not isinstance(item, RecurringEvent):
            raise EventStoreError(f"Event is not recurring: {uid}")
        return item

    def _validate(self, data: dict[str, Any]) -> Event | RecurringEvent:
        try:
            return _STORED_EVENT_ADAPTER.validate_python(data)
        except ValidationError as err:
            raise EventStoreError(f"Invalid event: {_describe(err)}") from err
