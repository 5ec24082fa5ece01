"""The Calendar component."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from .event import StoredEvent
from .timeline import Timeline
from .timezone import TimezoneResolver

_LOGGER = logging.getLogger(__name__)


class Calendar(BaseModel):
    """A collection of single events and recurring series."""

    events: list[StoredEvent] = Field(default_factory=list)
    """Events and series stored on this calendar."""

    model_config = ConfigDict(validate_assignment=True)

    @property
    def timeline(self) -> Timeline:
        """Return a timeline view of events on the calendar."""
        return self.timeline_with(TimezoneResolver())

    def timeline_with(self, resolver: TimezoneResolver) -> Timeline:
        """Return a timeline view that resolves timezones with the resolver."""
        return Timeline(self.events, resolver)
