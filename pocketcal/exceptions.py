"""Exceptions for pocketcal library."""


class CalendarError(Exception):
    """Base exception for all pocketcal errors."""


class CalendarParseError(CalendarError):
    """Exception raised when parsing calendar data.

    The 'message' attribute contains a human-readable message about the
    error that occurred. The 'detailed_error' attribute can provide additional
    information about the error, such as the underlying decoder error, useful
    for debugging purposes.
    """

    def __init__(self, message: str, *, detailed_error: str | None = None) -> None:
        """Initialize the CalendarParseError with a message."""
        super().__init__(message)
        self.message = message
        self.detailed_error = detailed_error


class RecurrenceRuleError(CalendarParseError):
    """Exception raised when a recurrence rule string is malformed or unsupported."""


class TimezoneError(CalendarError):
    """Exception raised for an unknown IANA timezone identifier."""


class RecurrenceError(CalendarError):
    """Exception raised when evaluating a recurrence rule.

    Expansion is a pure function of its inputs, so every one of these errors
    is a deterministic input problem and is never retried.
    """


class InvalidRangeError(RecurrenceError):
    """The query window bounds are not offset-qualified instants."""


class InvalidUntilError(RecurrenceError):
    """The UNTIL value of a rule is not an offset-qualified instant."""


class InvalidExdateError(RecurrenceError):
    """An exception date is not a strict offset-qualified instant."""


class UnresolvableLocalTimeError(RecurrenceError):
    """A local date and time could not be mapped to any instant in a timezone."""


class UnsupportedModeError(RecurrenceError):
    """An expansion mode other than wall-clock stable was requested."""


class StoreError(CalendarError):
    """Exception thrown by a Store."""


class EventStoreError(StoreError):
    """Exception thrown by the EventStore."""


class ConfigError(CalendarError):
    """Exception raised for invalid settings."""
