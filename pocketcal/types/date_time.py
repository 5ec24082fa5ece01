"""Library for parsing and encoding offset-qualified DATE-TIME strings.

Every date and time crossing the boundary of the library is written as
`YYYY-MM-DDTHH:MM:SS+HH:MM`: a four digit year, zero padded fields and an
explicit numeric offset. A bare `Z` designator is never accepted, UTC is
written as `+00:00` instead. Such a string denotes exactly one instant.
"""

from __future__ import annotations

import datetime
import logging
import re
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

__all__ = [
    "OFFSET_DATETIME_REGEX",
    "OffsetDateTime",
    "encode_offset",
    "encode_offset_datetime",
    "is_offset_datetime",
    "parse_offset_datetime",
]

_LOGGER = logging.getLogger(__name__)


OFFSET_DATETIME_REGEX = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}$"
)


def is_offset_datetime(value: Any) -> bool:
    """Return True if the value is a strict offset-qualified date-time string."""
    if not isinstance(value, str) or not OFFSET_DATETIME_REGEX.fullmatch(value):
        return False
    try:
        datetime.datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_offset_datetime(value: str) -> datetime.datetime:
    """Parse a strict offset-qualified string into an aware datetime.

    The returned value keeps the fixed offset of the string so that encoding
    it again reproduces the input.
    """
    if not isinstance(value, str) or not OFFSET_DATETIME_REGEX.fullmatch(value):
        raise ValueError(
            f"Expected value to match YYYY-MM-DDTHH:MM:SS+HH:MM pattern: {value!r}"
        )
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError as err:
        raise ValueError(f"Invalid date-time value {value!r}: {err}") from err


def encode_offset(offset_minutes: int) -> str:
    """Encode a UTC offset in minutes as `+HH:MM`."""
    sign = "+" if offset_minutes >= 0 else "-"
    hours, minutes = divmod(abs(offset_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def encode_offset_datetime(value: datetime.datetime) -> str:
    """Encode an aware datetime in its own offset."""
    if (offset := value.utcoffset()) is None:
        raise ValueError(f"Expected datetime with a timezone: {value}")
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f"{encode_offset(int(offset.total_seconds()) // 60)}"
    )


def _parse_field(value: Any) -> Any:
    if isinstance(value, str):
        return parse_offset_datetime(value)
    if isinstance(value, datetime.datetime) and value.tzinfo is None:
        raise ValueError(f"Expected datetime with a timezone: {value}")
    return value


OffsetDateTime = Annotated[
    datetime.datetime,
    BeforeValidator(_parse_field),
    PlainSerializer(encode_offset_datetime, return_type=str),
]
"""A pydantic field type for an aware datetime stored as an offset-qualified string."""
