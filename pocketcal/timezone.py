"""Library for observing absolute instants in a named IANA timezone.

The timezone database itself comes from `zoneinfo`, which checks the system
TZPATH and then falls back to the `tzdata` python package. This module is
the only place that touches it: everything else asks a `TimezoneResolver`
for the local date, time and UTC offset of an instant.

```python
import datetime
from pocketcal.timezone import TimezoneResolver

resolver = TimezoneResolver()
instant = datetime.datetime(2026, 4, 14, 8, 0, tzinfo=datetime.UTC)
print(resolver.format_instant(instant, "Europe/Warsaw"))
```

The above example will output:
```
2026-04-14T10:00:00+02:00
```
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime
import logging
import threading
import zoneinfo

from .exceptions import TimezoneError
from .types.date_time import encode_offset

__all__ = [
    "TimezoneResolver",
    "ZonedParts",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZonedParts:
    """The local date, time and UTC offset of an instant as observed in a timezone."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    offset_minutes: int

    @property
    def local(self) -> datetime.datetime:
        """Return the local date and time without any timezone attached."""
        return datetime.datetime(
            self.year, self.month, self.day, self.hour, self.minute, self.second
        )

    def isoformat(self) -> str:
        """Encode as `YYYY-MM-DDTHH:MM:SS+HH:MM`."""
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
            f"T{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
            f"{encode_offset(self.offset_minutes)}"
        )


class TimezoneResolver:
    """Decomposes instants into local parts for IANA timezones.

    Loaded timezones are cached per resolver. Entries are only ever added and
    never replaced, so lookups of an existing entry do not take the lock.
    """

    def __init__(self) -> None:
        """Initialize TimezoneResolver."""
        self._zones: dict[str, zoneinfo.ZoneInfo] = {}
        self._lock = threading.Lock()

    def zone(self, tz: str) -> zoneinfo.ZoneInfo:
        """Return the timezone for the IANA identifier, loading it on first use."""
        if (zone := self._zones.get(tz)) is not None:
            return zone
        with self._lock:
            if (zone := self._zones.get(tz)) is None:
                _LOGGER.debug("Loading timezone: %s", tz)
                try:
                    zone = zoneinfo.ZoneInfo(tz)
                except (zoneinfo.ZoneInfoNotFoundError, ValueError, TypeError) as err:
                    raise TimezoneError(f"Unknown timezone: {tz!r}") from err
                self._zones[tz] = zone
        return zone

    def zoned_parts(self, instant: datetime.datetime, tz: str) -> ZonedParts:
        """Return the local date, time and offset of the instant in the timezone."""
        if instant.tzinfo is None:
            raise ValueError(f"Expected instant with a timezone: {instant}")
        local = instant.astimezone(self.zone(tz))
        offset = local.utcoffset() or datetime.timedelta()
        return ZonedParts(
            year=local.year,
            month=local.month,
            day=local.day,
            hour=local.hour,
            minute=local.minute,
            second=local.second,
            offset_minutes=int(offset.total_seconds()) // 60,
        )

    def format_instant(self, instant: datetime.datetime, tz: str) -> str:
        """Render the instant as an offset-qualified string in the timezone."""
        return self.zoned_parts(instant, tz).isoformat()
