"""A local, file-backed personal calendar with wall-clock stable recurring events.

Events are either single events or recurring series anchored to a local time
in an IANA timezone. Series are expanded on demand into occurrences whose
local time of day stays the same across daylight saving transitions.
"""

__all__ = [
    "calendar",
    "calendar_stream",
    "cli",
    "config",
    "event",
    "exceptions",
    "iter",
    "localtime",
    "recur_adapter",
    "recurrence",
    "store",
    "timeline",
    "timespan",
    "timezone",
    "types",
    "util",
]
