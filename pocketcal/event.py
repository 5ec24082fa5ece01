"""Events stored on a calendar and the occurrences derived from them.

A stored event is one of two shapes:

  - `Event` is a single event with a start and an optional end.
  - `RecurringEvent` is a series anchored at its first instance in an IANA
    timezone, with a recurrence rule and a list of exception dates.

Both hold their title, place and participants in an `EventDetails`. The two
shapes are told apart by their `kind` field, which makes `StoredEvent` a
tagged union that pydantic can parse from persisted records.

An `Occurrence` is never stored. It is a single instance of a series built
when a series is expanded for a query window, and is identified by the
series uid and its own start time.

Example:
```python
from pocketcal.event import EventDetails, RecurringEvent

event = RecurringEvent(
    start="2026-03-23T09:00:00+01:00",
    end="2026-03-23T09:15:00+01:00",
    tz="Europe/Warsaw",
    rrule="FREQ=WEEKLY;BYDAY=MO",
    details=EventDetails(title="Standup"),
)
print(event.occurrence_starts("2026-03-20T00:00:00+01:00", "2026-04-10T00:00:00+02:00"))
```
"""

# pylint: disable=unnecessary-lambda

from __future__ import annotations

import datetime
import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import RecurrenceRuleError, TimezoneError
from .recurrence import expand_occurrences
from .timespan import Timespan
from .timezone import TimezoneResolver
from .types.date_time import OffsetDateTime, encode_offset_datetime, is_offset_datetime
from .types.recur import Recur
from .util import dtstamp_factory, uid_factory

__all__ = [
    "Event",
    "EventDetails",
    "Occurrence",
    "RecurringEvent",
    "StoredEvent",
    "occurrence_uid",
    "split_occurrence_uid",
]

_LOGGER = logging.getLogger(__name__)

OCCURRENCE_UID_SEPARATOR = "/"


def occurrence_uid(series_uid: str, start: str) -> str:
    """Return the identifier of an occurrence of a series."""
    return f"{series_uid}{OCCURRENCE_UID_SEPARATOR}{start}"


def split_occurrence_uid(uid: str) -> tuple[str, str | None]:
    """Split an identifier into the series uid and an optional occurrence start."""
    series_uid, sep, start = uid.partition(OCCURRENCE_UID_SEPARATOR)
    if not sep:
        return uid, None
    return series_uid, start


class EventDetails(BaseModel):
    """The descriptive fields shared by events, series and occurrences."""

    title: str
    """A short summary or subject for the event."""

    place: Optional[str] = None
    """The intended venue for the event."""

    participants: Optional[list[str]] = None
    """The people taking part in the event."""

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title is required and must be a non-empty string")
        return value


def _validate_end_after_start(
    start: datetime.datetime, end: datetime.datetime | None
) -> None:
    if end is not None and end <= start:
        raise ValueError("end must be after start")


class Event(BaseModel):
    """A single, non-recurring event on a calendar.

    The created and uid fields have factory methods invoked with a lambda to
    facilitate mocking in unit tests.
    """

    kind: Literal["single"] = "single"

    uid: str = Field(default_factory=lambda: uid_factory())
    """A globally unique identifier for the event."""

    start: OffsetDateTime
    """The start time of the event."""

    end: Optional[OffsetDateTime] = None
    """The end time of the event, which must be after the start."""

    details: EventDetails

    created: OffsetDateTime = Field(default_factory=lambda: dtstamp_factory())
    """The date and time the event was created."""

    model_config = ConfigDict(validate_assignment=True)

    @model_validator(mode="after")
    def _validate_end(self) -> Event:
        _validate_end_after_start(self.start, self.end)
        return self

    @property
    def recurring(self) -> bool:
        """Return true if this event is recurring."""
        return False

    @property
    def timespan(self) -> Timespan:
        """Return a timespan representing the event start and end."""
        return Timespan.of(self.start, self.end)


class RecurringEvent(BaseModel):
    """A series of events generated by a recurrence rule.

    The start is the anchor of the series: it is the first instance, and its
    local time of day is kept by every other instance. The end, when set,
    gives the series a fixed duration copied to every occurrence.
    """

    kind: Literal["series"] = "series"

    uid: str = Field(default_factory=lambda: uid_factory())
    """A globally unique identifier for the series."""

    start: OffsetDateTime
    """The start of the first instance of the series."""

    end: Optional[OffsetDateTime] = None
    """The end of the first instance of the series."""

    details: EventDetails

    created: OffsetDateTime = Field(default_factory=lambda: dtstamp_factory())
    """The date and time the series was created."""

    tz: str
    """The IANA timezone the wall-clock time of the series is kept in."""

    rrule: str
    """The recurrence rule, e.g. `FREQ=WEEKLY;BYDAY=MO`."""

    exdate: list[str] = Field(default_factory=list)
    """Start times of occurrences removed from the series."""

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("tz")
    @classmethod
    def _validate_tz(cls, value: str) -> str:
        try:
            TimezoneResolver().zone(value)
        except TimezoneError as err:
            raise ValueError(str(err)) from err
        return value

    @field_validator("rrule")
    @classmethod
    def _validate_rrule(cls, value: str) -> str:
        try:
            Recur.from_rrule(value)
        except RecurrenceRuleError as err:
            raise ValueError(str(err)) from err
        return value

    @field_validator("exdate")
    @classmethod
    def _validate_exdate(cls, values: list[str]) -> list[str]:
        for value in values:
            if not is_offset_datetime(value):
                raise ValueError(
                    f"exdate must be strict ISO with offset: {value!r}"
                )
        return values

    @model_validator(mode="after")
    def _validate_end(self) -> RecurringEvent:
        _validate_end_after_start(self.start, self.end)
        return self

    @property
    def recurring(self) -> bool:
        """Return true if this event is recurring."""
        return True

    @property
    def recur(self) -> Recur:
        """Return the parsed recurrence rule."""
        return Recur.from_rrule(self.rrule)

    @property
    def computed_duration(self) -> datetime.timedelta | None:
        """Return the fixed duration of each instance, if the series has an end."""
        if self.end is None:
            return None
        return self.end - self.start

    @property
    def timespan(self) -> Timespan:
        """Return a timespan representing the first instance."""
        return Timespan.of(self.start, self.end)

    def occurrence_starts(
        self,
        range_start: str | datetime.datetime,
        range_end: str | datetime.datetime,
        resolver: TimezoneResolver | None = None,
    ) -> list[str]:
        """Return the start of every instance within the inclusive window."""
        return expand_occurrences(
            encode_offset_datetime(self.start),
            self.tz,
            self.recur,
            range_start,
            range_end,
            exdate=self.exdate,
            resolver=resolver,
        )


class Occurrence(BaseModel):
    """A single instance of a series, derived when the series is expanded."""

    kind: Literal["occurrence"] = "occurrence"

    uid: str
    """The series uid joined with the start of this instance."""

    series_uid: str
    """The uid of the series this instance belongs to."""

    start: OffsetDateTime

    end: Optional[OffsetDateTime] = None

    details: EventDetails

    model_config = ConfigDict(frozen=True)

    @property
    def recurrence_id(self) -> str:
        """Return the start of the instance as used for exception dates."""
        return encode_offset_datetime(self.start)

    @property
    def timespan(self) -> Timespan:
        """Return a timespan representing the instance start and end."""
        return Timespan.of(self.start, self.end)


StoredEvent = Annotated[Union[Event, RecurringEvent], Field(discriminator="kind")]
"""A record persisted on a calendar."""


def event_sort_key(event: Any) -> datetime.datetime:
    """Return the value events are ordered by."""
    return event.start
