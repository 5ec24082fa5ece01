"""Implementation of recurrence rules for calendar series.

Only a constrained subset of the rfc5545 RRULE grammar is supported: a
semicolon separated list of `KEY=VALUE` pairs using the keys FREQ, INTERVAL,
BYDAY, BYSETPOS, COUNT and UNTIL, with a frequency of WEEKLY or MONTHLY.

```python
from pocketcal.types.recur import Recur

rule = Recur.from_rrule("FREQ=MONTHLY;BYDAY=TU;BYSETPOS=2")
print(rule.freq, rule.by_weekday, rule.by_setpos)
```

The above example will output something like this:
```
Frequency.MONTHLY [<Weekday.TUESDAY: 'TU'>] 2
```
"""

from __future__ import annotations

from collections.abc import Iterable
import datetime
import enum
import logging
import re
from typing import Optional

from dateutil import rrule
from pydantic import BaseModel, ConfigDict, Field

from pocketcal.exceptions import RecurrenceRuleError

__all__ = [
    "Frequency",
    "Recur",
    "Weekday",
]

_LOGGER = logging.getLogger(__name__)


# Note: This can be StrEnum in python 3.11 and higher
class Weekday(str, enum.Enum):
    """Corresponds to a day of the week."""

    SUNDAY = "SU"
    MONDAY = "MO"
    TUESDAY = "TU"
    WEDNESDAY = "WE"
    THURSDAY = "TH"
    FRIDAY = "FR"
    SATURDAY = "SA"

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @property
    def number(self) -> int:
        """Return the weekday number as used by `datetime.date.weekday`."""
        return RRULE_WEEKDAY[self].weekday


class Frequency(str, enum.Enum):
    """Type of recurrence rule.

    Frequencies SECONDLY, MINUTELY, HOURLY, DAILY and YEARLY are not supported.
    """

    WEEKLY = "WEEKLY"
    """Repeating events based on an interval of a week or more."""

    MONTHLY = "MONTHLY"
    """Repeating events based on an interval of a month or more."""


RRULE_FREQ = {
    Frequency.WEEKLY: rrule.WEEKLY,
    Frequency.MONTHLY: rrule.MONTHLY,
}
RRULE_WEEKDAY = {
    Weekday.MONDAY: rrule.MO,
    Weekday.TUESDAY: rrule.TU,
    Weekday.WEDNESDAY: rrule.WE,
    Weekday.THURSDAY: rrule.TH,
    Weekday.FRIDAY: rrule.FR,
    Weekday.SATURDAY: rrule.SA,
    Weekday.SUNDAY: rrule.SU,
}

SUPPORTED_KEYS = {"FREQ", "INTERVAL", "BYDAY", "BYSETPOS", "COUNT", "UNTIL"}
INTEGER_REGEX = re.compile(r"[-+]?[0-9]+")
MAX_SETPOS = 366


def _parse_int(key: str, value: str | None) -> int | None:
    if value is None:
        return None
    if not INTEGER_REGEX.fullmatch(value):
        raise RecurrenceRuleError(f"invalid {key}")
    return int(value)


class Recur(BaseModel):
    """A parsed recurrence rule with a weekly or monthly frequency.

    The by properties reduce or limit the number of occurrences generated. Only
    by day of the week and the nth position within the month are supported.
    """

    freq: Frequency

    interval: int = Field(default=1, ge=1)
    """Interval at which the recurrence rule repeats."""

    by_weekday: list[Weekday] = Field(alias="byday", default_factory=list)
    """Supported days of the week, empty means the weekday of the first instance."""

    by_setpos: Optional[int] = Field(alias="bysetpos", default=None)
    """The nth occurrence within the month, negative values count from the end."""

    count: Optional[int] = Field(default=None, ge=1)
    """The number of occurrences to bound the recurrence."""

    until: Optional[str] = None
    """The inclusive end of the recurrence as an unparsed offset-qualified string.

    The value is only checked when the rule is expanded.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )

    def weekdays_for(self, dtstart: datetime.date) -> set[int]:
        """Return the weekday numbers the rule recurs on for the first instance."""
        if not self.by_weekday:
            return {dtstart.weekday()}
        return {weekday.number for weekday in self.by_weekday}

    def as_rrule(
        self,
        dtstart: datetime.datetime,
        weekdays: Iterable[int] | None = None,
        until: datetime.datetime | None = None,
    ) -> rrule.rrule:
        """Create a dateutil rrule of naive local start times from dtstart.

        Weeks start on the weekday of dtstart so that INTERVAL counts whole
        weeks from the first instance. COUNT and UNTIL of this rule are bounds
        on resolved instants and are not part of the result; `until` is a local
        bound on the enumeration itself.
        """
        if dtstart.tzinfo is not None:
            raise ValueError(f"Expected a naive local dtstart: {dtstart}")
        if weekdays is None:
            weekdays = self.weekdays_for(dtstart.date())
        bysetpos: int | None = None
        if self.freq == Frequency.MONTHLY:
            bysetpos = self.by_setpos
        return rrule.rrule(
            freq=RRULE_FREQ[self.freq],
            dtstart=dtstart,
            interval=self.interval,
            wkst=dtstart.weekday(),
            until=until,
            byweekday=sorted(weekdays),
            bysetpos=bysetpos,
            cache=True,
        )

    def as_rrule_str(self) -> str:
        """Return the Recur instance as an RRULE string."""
        parts = [f"FREQ={self.freq.value}", f"INTERVAL={self.interval}"]
        if self.by_weekday:
            parts.append("BYDAY=" + ",".join(str(wd) for wd in self.by_weekday))
        if self.by_setpos is not None:
            parts.append(f"BYSETPOS={self.by_setpos}")
        if self.count is not None:
            parts.append(f"COUNT={self.count}")
        if self.until is not None:
            parts.append(f"UNTIL={self.until}")
        return ";".join(parts)

    @classmethod
    def from_rrule(cls, rrule_str: str) -> Recur:
        """Create a Recur object from an RRULE string."""
        if not isinstance(rrule_str, str) or not rrule_str.strip():
            raise RecurrenceRuleError("invalid rrule")

        values: dict[str, str] = {}
        for part in rrule_str.split(";"):
            if part.count("=") != 1:
                raise RecurrenceRuleError(
                    "invalid rrule", detailed_error=f"Malformed rule part: {part!r}"
                )
            raw_key, raw_value = part.split("=")
            if not (key := raw_key.strip().upper()):
                raise RecurrenceRuleError(
                    "invalid rrule", detailed_error=f"Missing key: {part!r}"
                )
            if key not in SUPPORTED_KEYS:
                raise RecurrenceRuleError(f"unsupported rrule field: {key}")
            values[key] = raw_value.strip()

        try:
            freq = Frequency(values.get("FREQ", ""))
        except ValueError as err:
            raise RecurrenceRuleError("unsupported or invalid FREQ") from err

        # An empty INTERVAL is the default
        interval = _parse_int("INTERVAL", values.get("INTERVAL") or None)
        if interval is not None and interval < 1:
            raise RecurrenceRuleError("invalid INTERVAL")

        by_weekday: list[Weekday] = []
        for code in values.get("BYDAY", "").split(","):
            if not (code := code.strip().upper()):
                continue
            try:
                by_weekday.append(Weekday(code))
            except ValueError as err:
                raise RecurrenceRuleError("invalid BYDAY") from err

        by_setpos = _parse_int("BYSETPOS", values.get("BYSETPOS"))
        if by_setpos is not None and not 0 < abs(by_setpos) <= MAX_SETPOS:
            raise RecurrenceRuleError("invalid BYSETPOS")

        count = _parse_int("COUNT", values.get("COUNT"))
        if count is not None and count < 1:
            raise RecurrenceRuleError("invalid COUNT")

        recur = cls(
            freq=freq,
            interval=interval or 1,
            by_weekday=by_weekday,
            by_setpos=by_setpos,
            count=count,
            until=values.get("UNTIL") or None,
        )
        _LOGGER.debug("Parsed rule %s as %s", rrule_str, recur)
        return recur
