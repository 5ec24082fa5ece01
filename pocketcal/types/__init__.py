"""Library for parsing and encoding the value types used by pocketcal."""

from .date_time import (
    OffsetDateTime,
    encode_offset_datetime,
    is_offset_datetime,
    parse_offset_datetime,
)
from .recur import Frequency, Recur, Weekday

__all__ = [
    "Frequency",
    "OffsetDateTime",
    "Recur",
    "Weekday",
    "encode_offset_datetime",
    "is_offset_datetime",
    "parse_offset_datetime",
]
