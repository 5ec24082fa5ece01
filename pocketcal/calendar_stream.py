"""Persistence of a calendar as a flat JSON file.

A calendar is stored as a JSON list of event records. This is an example of
loading a calendar, adding an event and writing it back:

```python
from pathlib import Path
from pocketcal.calendar_stream import CalendarFile
from pocketcal.event import Event, EventDetails

calendar_file = CalendarFile(Path("~/.pocketcal/events.json").expanduser())
calendar = calendar_file.load()
calendar.events.append(
    Event(start="2026-02-14T10:00:00+01:00", details=EventDetails(title="Meeting"))
)
calendar_file.save(calendar)
```
"""

from __future__ import annotations

import logging
import os
import pathlib
import tempfile

from pydantic import TypeAdapter, ValidationError

from .calendar import Calendar
from .event import StoredEvent
from .exceptions import CalendarParseError

__all__ = [
    "CalendarFile",
    "JsonCalendarStream",
]

_LOGGER = logging.getLogger(__name__)

_EVENTS_ADAPTER = TypeAdapter(list[StoredEvent])


class JsonCalendarStream:
    """Encodes and decodes a calendar as a JSON list of event records."""

    @classmethod
    def calendar_from_json(cls, content: str) -> Calendar:
        """Load a calendar from JSON content."""
        try:
            events = _EVENTS_ADAPTER.validate_json(content)
        except ValidationError as err:
            raise CalendarParseError(
                "Failed to parse calendar contents", detailed_error=str(err)
            ) from err
        _LOGGER.debug("Parsed %d events", len(events))
        return Calendar(events=events)

    @classmethod
    def calendar_to_json(cls, calendar: Calendar) -> str:
        """Serialize a calendar as JSON content."""
        return _EVENTS_ADAPTER.dump_json(
            calendar.events, indent=2, exclude_none=True
        ).decode()


class CalendarFile:
    """A calendar stored in a file on disk."""

    def __init__(self, path: pathlib.Path) -> None:
        """Initialize CalendarFile."""
        self._path = path

    @property
    def path(self) -> pathlib.Path:
        """Return the path of the calendar file."""
        return self._path

    def load(self) -> Calendar:
        """Read the calendar, returning an empty calendar if the file does not exist."""
        if not self._path.exists():
            _LOGGER.debug("No calendar file at %s", self._path)
            return Calendar()
        _LOGGER.debug("Loading calendar from %s", self._path)
        return JsonCalendarStream.calendar_from_json(
            self._path.read_text(encoding="utf-8")
        )

    def save(self, calendar: Calendar) -> None:
        """Write the calendar, replacing the previous file contents atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = JsonCalendarStream.calendar_to_json(calendar)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=".events-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(content)
                tmp_file.write("\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            os.unlink(tmp_name)
            raise
        _LOGGER.debug("Saved %d events to %s", len(calendar.events), self._path)
