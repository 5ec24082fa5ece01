"""Tests for the event store."""

from __future__ import annotations

from collections.abc import Callable, Generator
import datetime
import time
from typing import Any
import zoneinfo

import pytest
from freezegun import freeze_time
from freezegun.api import FrozenDateTimeFactory

from pocketcal.calendar import Calendar
from pocketcal.event import Event, EventDetails, Occurrence, RecurringEvent
from pocketcal.exceptions import (
    EventStoreError,
    InvalidExdateError,
    InvalidRangeError,
    StoreError,
)
from pocketcal.store import EventStore

TZ = zoneinfo.ZoneInfo("Europe/Warsaw")


@pytest.fixture(name="calendar")
def mock_calendar() -> Calendar:
    """Fixture to create a calendar."""
    return Calendar()


@pytest.fixture(name="store")
def mock_store(calendar: Calendar) -> EventStore:
    """Fixture to create an event store."""
    return EventStore(calendar, tzinfo_fn=lambda: TZ)


@pytest.fixture(name="frozen_time", autouse=True)
def mock_frozen_time() -> Generator[FrozenDateTimeFactory, None, None]:
    """Fixture to freeze time to a specific point."""
    with freeze_time("2026-03-30T08:00:00+00:00") as freeze:
        yield freeze


@pytest.fixture(name="fetch_events")
def mock_fetch_events(
    calendar: Calendar,
) -> Callable[..., list[dict[str, Any]]]:
    """Fixture to return the stored records."""

    def _func() -> list[dict[str, Any]]:
        return [
            event.model_dump(exclude_none=True, exclude={"created"})
            for event in calendar.events
        ]

    return _func


@pytest.fixture(name="standup")
def mock_standup(store: EventStore) -> Event | RecurringEvent:
    """Fixture that adds a weekly series to the store."""
    return store.create(
        "Standup",
        "2026-03-23T09:00:00+01:00",
        end="2026-03-23T09:15:00+01:00",
        participants=["Ana", "Ben"],
        tz="Europe/Warsaw",
        rrule="FREQ=WEEKLY;BYDAY=MO",
    )


def test_empty_store(
    store: EventStore, fetch_events: Callable[..., list[dict[str, Any]]]
) -> None:
    """Test an empty calendar."""
    assert fetch_events() == []
    assert store.list() == []
    assert store.today() == []


def test_create_single_event(
    store: EventStore, fetch_events: Callable[..., list[dict[str, Any]]]
) -> None:
    """Test creating an event that is given the default duration."""
    event = store.create("Dentist", "2026-03-31T14:00:00+02:00", place="Clinic")
    assert isinstance(event, Event)
    assert fetch_events() == [
        {
            "kind": "single",
            "uid": "mock-uid-1",
            "start": "2026-03-31T14:00:00+02:00",
            "end": "2026-03-31T15:00:00+02:00",
            "details": {"title": "Dentist", "place": "Clinic"},
        }
    ]
    assert event.created == datetime.datetime(2026, 3, 30, 8, 0, tzinfo=datetime.UTC)


def test_default_duration(calendar: Calendar) -> None:
    """Test a store with a configured default duration."""
    store = EventStore(calendar, default_duration=datetime.timedelta(minutes=30))
    event = store.create("Call", "2026-03-31T14:00:00+02:00")
    assert event.end == datetime.datetime.fromisoformat("2026-03-31T14:30:00+02:00")


def test_add_event(
    store: EventStore, fetch_events: Callable[..., list[dict[str, Any]]]
) -> None:
    """Test adding an event object to the store."""
    store.add(
        Event(
            start="2026-03-31T14:00:00+02:00",
            end="2026-03-31T14:10:00+02:00",
            details=EventDetails(title="Call"),
        )
    )
    assert [event["end"] for event in fetch_events()] == ["2026-03-31T14:10:00+02:00"]


def test_create_series(
    standup: RecurringEvent, fetch_events: Callable[..., list[dict[str, Any]]]
) -> None:
    """Test creating a recurring series."""
    assert isinstance(standup, RecurringEvent)
    assert fetch_events() == [
        {
            "kind": "series",
            "uid": "mock-uid-1",
            "start": "2026-03-23T09:00:00+01:00",
            "end": "2026-03-23T09:15:00+01:00",
            "details": {"title": "Standup", "participants": ["Ana", "Ben"]},
            "tz": "Europe/Warsaw",
            "rrule": "FREQ=WEEKLY;BYDAY=MO",
            "exdate": [],
        }
    ]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"title": ""}, "title is required"),
        ({"start": "2026-03-31 14:00"}, "start: Expected value to match"),
        ({"end": "2026-03-31T13:00:00+02:00"}, "end must be after start"),
        ({"tz": "Europe/Warsaw"}, "rrule"),
        ({"rrule": "FREQ=WEEKLY"}, "tz"),
        ({"tz": "Nowhere/City", "rrule": "FREQ=WEEKLY"}, "Unknown timezone"),
        ({"tz": "Europe/Warsaw", "rrule": "FREQ=HOURLY"}, "unsupported or invalid FREQ"),
    ],
)
def test_create_invalid(
    store: EventStore,
    fetch_events: Callable[..., list[dict[str, Any]]],
    kwargs: dict[str, Any],
    message: str,
) -> None:
    """Test creating events with invalid fields."""
    values = {"title": "Dentist", "start": "2026-03-31T14:00:00+02:00", **kwargs}
    with pytest.raises(EventStoreError, match=message):
        store.create(values.pop("title"), values.pop("start"), **values)
    assert fetch_events() == []


def test_edit_event(
    store: EventStore,
    fetch_events: Callable[..., list[dict[str, Any]]],
    frozen_time: FrozenDateTimeFactory,
) -> None:
    """Test editing the fields of an event."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    frozen_time.tick(delta=datetime.timedelta(seconds=10))

    edited = store.edit(
        "mock-uid-1",
        title="Dentist (moved)",
        start="2026-04-01T14:00:00+02:00",
        end="2026-04-01T14:30:00+02:00",
        participants=["Ana"],
    )
    assert edited.uid == "mock-uid-1"
    assert fetch_events() == [
        {
            "kind": "single",
            "uid": "mock-uid-1",
            "start": "2026-04-01T14:00:00+02:00",
            "end": "2026-04-01T14:30:00+02:00",
            "details": {"title": "Dentist (moved)", "participants": ["Ana"]},
        }
    ]
    # The creation time is kept
    assert edited.created == datetime.datetime(2026, 3, 30, 8, 0, tzinfo=datetime.UTC)


def test_edit_into_series(
    store: EventStore, fetch_events: Callable[..., list[dict[str, Any]]]
) -> None:
    """Test that giving an event a rule makes it a series."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    edited = store.edit("mock-uid-1", tz="Europe/Warsaw", rrule="FREQ=MONTHLY")
    assert isinstance(edited, RecurringEvent)
    assert fetch_events()[0]["kind"] == "series"
    assert store.occurrences(
        "mock-uid-1", "2026-03-01T00:00:00+01:00", "2026-05-31T00:00:00+02:00"
    ) == [
        "2026-03-31T14:00:00+02:00",
        "2026-04-07T14:00:00+02:00",
        "2026-04-14T14:00:00+02:00",
        "2026-04-21T14:00:00+02:00",
        "2026-04-28T14:00:00+02:00",
        "2026-05-05T14:00:00+02:00",
        "2026-05-12T14:00:00+02:00",
        "2026-05-19T14:00:00+02:00",
        "2026-05-26T14:00:00+02:00",
    ]


def test_edit_invalid(store: EventStore) -> None:
    """Test edits that are rejected."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    with pytest.raises(EventStoreError, match="Unsupported fields"):
        store.edit("mock-uid-1", uid="other")
    with pytest.raises(EventStoreError, match="end must be after start"):
        store.edit("mock-uid-1", end="2026-03-31T13:00:00+02:00")
    with pytest.raises(StoreError, match="Event not found: mock-uid-9"):
        store.edit("mock-uid-9", title="Missing")
    # Failed edits leave the event untouched
    assert store.get("mock-uid-1").details.title == "Dentist"


def test_delete_event(
    store: EventStore, fetch_events: Callable[..., list[dict[str, Any]]]
) -> None:
    """Test deleting events."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    store.create("Call", "2026-03-31T16:00:00+02:00")
    store.delete("mock-uid-1")
    assert [event["uid"] for event in fetch_events()] == ["mock-uid-2"]
    with pytest.raises(EventStoreError, match="Event not found"):
        store.delete("mock-uid-1")


def test_delete_series(
    store: EventStore,
    standup: RecurringEvent,
    fetch_events: Callable[..., list[dict[str, Any]]],
) -> None:
    """Test deleting an entire series."""
    store.delete(standup.uid)
    assert fetch_events() == []


def test_delete_occurrence(store: EventStore, standup: RecurringEvent) -> None:
    """Test that deleting an occurrence skips it."""
    store.delete("mock-uid-1/2026-03-30T09:00:00+02:00")
    store.delete("mock-uid-1", recurrence_id="2026-04-06T09:00:00+02:00")
    assert standup.exdate == [
        "2026-03-30T09:00:00+02:00",
        "2026-04-06T09:00:00+02:00",
    ]
    assert store.occurrences(
        "mock-uid-1", "2026-03-20T00:00:00+01:00", "2026-04-14T00:00:00+02:00"
    ) == ["2026-03-23T09:00:00+01:00", "2026-04-13T09:00:00+02:00"]


def test_skip(store: EventStore, standup: RecurringEvent) -> None:
    """Test skipping an occurrence, which has no effect when repeated."""
    store.skip(standup.uid, "2026-03-30T09:00:00+02:00")
    store.skip(standup.uid, "2026-03-30T09:00:00+02:00")
    assert store.get(standup.uid).exdate == ["2026-03-30T09:00:00+02:00"]


@pytest.mark.parametrize(
    "recurrence_id", ["2026-03-30 09:00", "2026-03-30T09:00:00Z", "2026-03-30"]
)
def test_skip_invalid(
    store: EventStore, standup: RecurringEvent, recurrence_id: str
) -> None:
    """Test skipping an occurrence with a malformed start."""
    with pytest.raises(InvalidExdateError, match="invalid exDates"):
        store.skip(standup.uid, recurrence_id)
    assert standup.exdate == []


def test_skip_single_event(store: EventStore) -> None:
    """Test that only a series has occurrences."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    with pytest.raises(EventStoreError, match="Event is not recurring"):
        store.skip("mock-uid-1", "2026-03-31T14:00:00+02:00")
    with pytest.raises(EventStoreError, match="Event is not recurring"):
        store.occurrences(
            "mock-uid-1", "2026-03-01T00:00:00+01:00", "2026-04-01T00:00:00+02:00"
        )


def test_list(store: EventStore) -> None:
    """Test listing stored records ordered by start."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    store.create(
        "Standup",
        "2026-03-23T09:00:00+01:00",
        tz="Europe/Warsaw",
        rrule="FREQ=WEEKLY;BYDAY=MO",
    )
    assert [event.uid for event in store.list()] == ["mock-uid-2", "mock-uid-1"]


def test_list_range(store: EventStore, standup: RecurringEvent) -> None:
    """Test listing events and occurrences in a window."""
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    items = store.list_range("2026-03-29T00:00:00+01:00", "2026-04-06T23:59:59+02:00")
    assert [item.uid for item in items] == [
        "mock-uid-1/2026-03-30T09:00:00+02:00",
        "mock-uid-2",
        "mock-uid-1/2026-04-06T09:00:00+02:00",
    ]
    assert isinstance(items[0], Occurrence)
    assert items[0].details.participants == ["Ana", "Ben"]


def test_list_range_invalid(store: EventStore) -> None:
    """Test listing with malformed window bounds."""
    with pytest.raises(InvalidRangeError, match="invalid range"):
        store.list_range("2026-03-29", "2026-04-06T23:59:59+02:00")


def test_today(store: EventStore, standup: RecurringEvent) -> None:
    """Test the events happening on the current local day."""
    store.create("Gym", "2026-03-30T18:00:00+02:00")
    store.create("Dentist", "2026-03-31T14:00:00+02:00")
    assert [item.details.title for item in store.today()] == ["Standup", "Gym"]
    assert [
        item.details.title
        for item in store.today(now=datetime.datetime(2026, 3, 31, 12, tzinfo=TZ))
    ] == ["Dentist"]


def test_week(
    store: EventStore,
    standup: RecurringEvent,
    frozen_time: FrozenDateTimeFactory,
) -> None:
    """Test the events happening in the current week."""
    store.create("Dentist", "2026-04-02T14:00:00+02:00")
    store.create("Trip", "2026-04-06T06:00:00+02:00")
    assert [item.uid for item in store.week()] == [
        "mock-uid-1/2026-03-30T09:00:00+02:00",
        "mock-uid-2",
    ]
    frozen_time.move_to("2026-04-08T12:00:00+00:00")
    assert [item.uid for item in store.week()] == [
        "mock-uid-3",
        "mock-uid-1/2026-04-06T09:00:00+02:00",
    ]


@pytest.fixture(name="system_tz")
def mock_system_tz(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Fixture to set the system timezone of the process."""
    monkeypatch.setenv("TZ", "Europe/Warsaw")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.mark.usefixtures("system_tz")
def test_views_in_system_timezone(calendar: Calendar) -> None:
    """Test the day and week views follow daylight saving of the system timezone."""
    store = EventStore(calendar)
    store.create("Late Sunday", "2026-03-22T23:30:00+01:00")
    assert store.week(now=datetime.datetime(2026, 3, 25, 12, tzinfo=TZ)) == []
    assert [
        item.details.title
        for item in store.today(now=datetime.datetime(2026, 3, 22, 12, tzinfo=TZ))
    ] == ["Late Sunday"]


def test_occurrence_events(store: EventStore, standup: RecurringEvent) -> None:
    """Test materializing the instances of a series."""
    store.skip(standup.uid, "2026-03-30T09:00:00+02:00")
    occurrences = store.occurrence_events(
        standup.uid, "2026-03-20T00:00:00+01:00", "2026-04-10T00:00:00+02:00"
    )
    assert [(item.recurrence_id, item.timespan.duration) for item in occurrences] == [
        ("2026-03-23T09:00:00+01:00", datetime.timedelta(minutes=15)),
        ("2026-04-06T09:00:00+02:00", datetime.timedelta(minutes=15)),
    ]
