"""Resolve local wall-clock date and times to absolute instants.

A local date and time in a timezone can map to zero, one or two instants
depending on daylight saving transitions. The offsets in effect near the
local time are discovered by probing the timezone, and every candidate
instant is verified by decomposing it back into local time.

When a local time occurs twice (a fold, when clocks fall back) the later
instant is chosen, which is the standard time occurrence. When a local time
never occurs (a gap, when clocks spring forward) the local time is moved
forward minute by minute, preferring the first shift that keeps the
original minute and second, so 02:30 in a one hour gap becomes 03:30.
"""

from __future__ import annotations

import datetime
import logging

from .exceptions import UnresolvableLocalTimeError
from .timezone import TimezoneResolver

__all__ = [
    "GAP_SEARCH_MINUTES",
    "find_instants",
    "resolve_local",
]

_LOGGER = logging.getLogger(__name__)

GAP_SEARCH_MINUTES = 180
"""Maximum number of minutes a local time in a gap is moved forward."""

_PROBE_DELTAS = (
    datetime.timedelta(0),
    datetime.timedelta(days=-1),
    datetime.timedelta(days=1),
)


def find_instants(
    local: datetime.datetime, tz: str, resolver: TimezoneResolver
) -> list[datetime.datetime]:
    """Return every UTC instant that is observed as the local time in the timezone.

    The result is in ascending order and contains zero instants for a
    local time in a gap, or two for a local time in a fold.
    """
    naive = local.replace(tzinfo=datetime.UTC, microsecond=0)
    offsets = {
        resolver.zoned_parts(naive + delta, tz).offset_minutes
        for delta in _PROBE_DELTAS
    }
    instants: set[datetime.datetime] = set()
    for offset in offsets:
        candidate = naive - datetime.timedelta(minutes=offset)
        if resolver.zoned_parts(candidate, tz).local == naive.replace(tzinfo=None):
            instants.add(candidate)
    return sorted(instants)


def resolve_local(
    local: datetime.datetime,
    tz: str,
    resolver: TimezoneResolver,
) -> datetime.datetime:
    """Return the UTC instant for a local date and time in the timezone."""
    if instants := find_instants(local, tz, resolver):
        if len(instants) > 1:
            _LOGGER.debug("Local time %s is ambiguous in %s: %s", local, tz, instants)
        return instants[-1]

    fallback: datetime.datetime | None = None
    for shift in range(1, GAP_SEARCH_MINUTES + 1):
        shifted = local + datetime.timedelta(minutes=shift)
        if not (instants := find_instants(shifted, tz, resolver)):
            continue
        if fallback is None:
            fallback = instants[-1]
        if shifted.minute == local.minute and shifted.second == local.second:
            _LOGGER.debug(
                "Local time %s does not exist in %s, shifted to %s", local, tz, shifted
            )
            return instants[-1]

    if fallback is not None:
        _LOGGER.debug(
            "Local time %s does not exist in %s, using %s", local, tz, fallback
        )
        return fallback
    raise UnresolvableLocalTimeError(
        f"invalid local date-time for timezone: {local.isoformat()} in {tz}"
    )
