"""Utility methods used by multiple components."""

from __future__ import annotations

import datetime
import uuid

from dateutil import tz

__all__ = [
    "dtstamp_factory",
    "uid_factory",
    "local_timezone",
]


def dtstamp_factory() -> datetime.datetime:
    """Factory method for new event timestamps to facilitate mocking."""
    return datetime.datetime.now(tz=datetime.UTC)


def uid_factory() -> str:
    """Factory method for new uids to facilitate mocking."""
    return str(uuid.uuid1())


def local_timezone() -> datetime.tzinfo:
    """Get the local timezone used for the today and week views.

    The result follows daylight saving changes of the system timezone, so a
    range built from it has the offset in effect on each of its dates.
    """
    return tz.tzlocal()
