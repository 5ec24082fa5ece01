"""Expansion of recurrence rules into occurrence start times.

A series is anchored at an offset-qualified start such as
`2026-03-10T10:00:00+01:00` in an IANA timezone. The anchor defines both the
earliest instance and the wall-clock time of day of every instance: each
candidate date produced by the rule is combined with the anchor time of day
and resolved in the timezone, so the local time stays stable across daylight
saving changes while the offset follows the timezone.

```python
from pocketcal.recurrence import expand_occurrences

print(
    expand_occurrences(
        "2026-03-10T10:00:00+01:00",
        "Europe/Warsaw",
        "FREQ=MONTHLY;INTERVAL=1;BYDAY=TU;BYSETPOS=2",
        "2026-03-01T00:00:00+01:00",
        "2026-05-01T00:00:00+02:00",
    )
)
```

The above example will output:
```
['2026-03-10T10:00:00+01:00', '2026-04-14T10:00:00+02:00']
```
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import datetime
import enum
import logging

from dateutil.relativedelta import relativedelta

from .exceptions import (
    InvalidExdateError,
    InvalidRangeError,
    InvalidUntilError,
    RecurrenceError,
    UnsupportedModeError,
)
from .localtime import resolve_local
from .timezone import TimezoneResolver
from .types.date_time import is_offset_datetime, parse_offset_datetime
from .types.recur import Frequency, Recur

__all__ = [
    "ExpansionMode",
    "RecurrenceIterable",
    "expand_occurrences",
]

_LOGGER = logging.getLogger(__name__)

MAX_WEEKLY_DAYS = 3660
"""Number of days scanned by a weekly rule before giving up."""

MAX_MONTHS = 240
"""Number of months scanned by a monthly rule before giving up."""

_SKIP_MARGIN_PERIODS = 2

_DateTimeInput = str | datetime.datetime


class ExpansionMode(str, enum.Enum):
    """Policy for resolving the local time of each occurrence."""

    WALL = "wall"
    """Every occurrence keeps the local time of day of the first instance."""


def _as_instant(
    value: _DateTimeInput, exc: type[Exception], label: str
) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            raise exc(f"invalid {label}: expected a timezone: {value}")
        return value
    try:
        return parse_offset_datetime(value)
    except ValueError as err:
        raise exc(f"invalid {label}: {value!r}") from err


class RecurrenceIterable(Iterable[datetime.datetime]):
    """The UTC start instants generated by a rule, in chronological order.

    Local start times come from a dateutil rrule anchored at the wall clock
    time of the first instance, and each is resolved to an instant in the
    series timezone. Every instant produced counts towards COUNT, whether or
    not a caller later drops it for being outside a query window or an
    exception. When COUNT is unset, `skip_to` and `horizon` let the iteration
    start near and stop shortly after a query window instead of scanning from
    the anchor.
    """

    def __init__(
        self,
        rule: Recur,
        dtstart: datetime.datetime,
        tz: str,
        resolver: TimezoneResolver,
        *,
        skip_to: datetime.datetime | None = None,
        horizon: datetime.datetime | None = None,
    ) -> None:
        """Initialize RecurrenceIterable."""
        if dtstart.tzinfo is None:
            raise ValueError(f"Expected dtstart with a timezone: {dtstart}")
        self._rule = rule
        self._dtstart = dtstart
        self._tz = tz
        self._resolver = resolver
        self._until: datetime.datetime | None = None
        if rule.until is not None:
            self._until = _as_instant(rule.until, InvalidUntilError, "UNTIL")
        bounded = rule.count is None
        self._skip_to = skip_to if bounded else None
        self._horizon = horizon if bounded else None
        # Wall clock template of the series, taken in the anchor's own offset
        self._local_start = dtstart.replace(tzinfo=None)
        self._weekdays = rule.weekdays_for(self._local_start.date())

    def _skip_periods(self) -> int:
        """Return the number of whole periods to skip before the query window."""
        if self._skip_to is None:
            return 0
        if self._rule.freq == Frequency.WEEKLY:
            rough = (self._skip_to - self._dtstart) // datetime.timedelta(weeks=1)
        else:
            target = self._skip_to.astimezone(datetime.UTC)
            rough = (target.year - self._local_start.year) * 12 + (
                target.month - self._local_start.month
            )
        return max(rough // self._rule.interval - _SKIP_MARGIN_PERIODS, 0)

    def _local_starts(self) -> Iterable[datetime.datetime]:
        """Return the local start times of the rule up to the scan ceiling."""
        start = self._local_start
        if self._rule.freq == Frequency.WEEKLY:
            if periods := self._skip_periods():
                start += datetime.timedelta(weeks=periods * self._rule.interval)
                _LOGGER.debug("Skipping ahead to %s", start)
            ceiling = start + datetime.timedelta(days=MAX_WEEKLY_DAYS - 1)
        else:
            if periods := self._skip_periods():
                start = start.replace(day=1) + relativedelta(
                    months=periods * self._rule.interval
                )
                _LOGGER.debug("Skipping ahead to %s", start)
            ceiling = datetime.datetime.combine(
                start.date().replace(day=1) + relativedelta(months=MAX_MONTHS),
                datetime.time(),
            ) - datetime.timedelta(microseconds=1)
        return self._rule.as_rrule(start, self._weekdays, until=ceiling)

    def __iter__(self) -> Iterator[datetime.datetime]:
        """Return an iterator as a traversal over instants in chronological order."""
        generated = 0
        for local in self._local_starts():
            instant = resolve_local(local, self._tz, self._resolver)
            if instant < self._dtstart:
                continue
            if self._until is not None and instant > self._until:
                return
            if self._horizon is not None and instant > self._horizon:
                return
            generated += 1
            if self._rule.count is not None and generated > self._rule.count:
                return
            yield instant

    def __repr__(self) -> str:
        return (
            f"RecurrenceIterable(dtstart={self._dtstart}, tz={self._tz}, "
            f"rule={self._rule.as_rrule_str()})"
        )


def _parse_exdates(exdate: Iterable[str]) -> set[str]:
    values = set()
    for value in exdate:
        if not is_offset_datetime(value):
            raise InvalidExdateError(
                f"invalid exDates: must be strict ISO with offset: {value!r}"
            )
        values.add(value)
    return values


def expand_occurrences(
    dtstart: _DateTimeInput,
    tz: str,
    rrule: str | Recur,
    range_start: _DateTimeInput,
    range_end: _DateTimeInput,
    *,
    exdate: Iterable[str] = (),
    mode: ExpansionMode | str = ExpansionMode.WALL,
    resolver: TimezoneResolver | None = None,
) -> list[str]:
    """Return the occurrence start times of a series within an inclusive window.

    Each result is an offset-qualified string in the series timezone. An
    exception date removes the occurrence whose string form it matches
    exactly, and is otherwise ignored.
    """
    try:
        mode = ExpansionMode(mode)
    except ValueError as err:
        raise UnsupportedModeError(f"unsupported mode: {mode!r}") from err
    rule = rrule if isinstance(rrule, Recur) else Recur.from_rrule(rrule)
    window_start = _as_instant(range_start, InvalidRangeError, "range")
    window_end = _as_instant(range_end, InvalidRangeError, "range")
    anchor = _as_instant(dtstart, RecurrenceError, "dtstart")
    exdates = _parse_exdates(exdate)
    resolver = resolver or TimezoneResolver()

    instants = RecurrenceIterable(
        rule,
        anchor,
        tz,
        resolver,
        skip_to=window_start,
        horizon=window_end,
    )
    results = []
    for instant in instants:
        if not window_start <= instant <= window_end:
            continue
        value = resolver.format_instant(instant, tz)
        if value in exdates:
            _LOGGER.debug("Excluding occurrence %s", value)
            continue
        results.append(value)
    return results
