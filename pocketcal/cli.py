"""Command line interface for managing a pocketcal calendar."""

from __future__ import annotations

import argparse
from collections.abc import Iterable, Sequence
import dataclasses
import logging
import pathlib
import sys
from typing import Any, TextIO

from .calendar_stream import CalendarFile
from .config import Settings
from .event import Event, Occurrence, RecurringEvent
from .exceptions import CalendarError
from .store import EventStore
from .types.date_time import encode_offset_datetime

__all__ = ["build_parser", "format_event", "main"]

_LOGGER = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_MUTATING_COMMANDS = {"add", "delete", "edit", "skip"}


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="pocketcal", description="A local personal calendar."
    )
    parser.add_argument("--data-dir", help="Directory holding the calendar file.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug information."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Add an event or a series.")
    add_parser.add_argument("title")
    add_parser.add_argument("--start", required=True)
    add_parser.add_argument("--end")
    add_parser.add_argument("--place")
    add_parser.add_argument("--participants", help="Comma separated names.")
    add_parser.add_argument("--tz", help="IANA timezone of a recurring series.")
    add_parser.add_argument("--rrule", help="Recurrence rule of a series.")

    subparsers.add_parser("today", help="List today's events.")
    subparsers.add_parser("week", help="List this week's events.")

    list_parser = subparsers.add_parser(
        "list", help="List all events, or the events in a range."
    )
    list_parser.add_argument("--from", dest="range_start")
    list_parser.add_argument("--to", dest="range_end")

    delete_parser = subparsers.add_parser(
        "delete", help="Delete an event, or skip a single occurrence."
    )
    delete_parser.add_argument("id")

    edit_parser = subparsers.add_parser("edit", help="Edit an event.")
    edit_parser.add_argument("id")
    edit_parser.add_argument("--title")
    edit_parser.add_argument("--start")
    edit_parser.add_argument("--end")
    edit_parser.add_argument("--place")
    edit_parser.add_argument("--participants", help="Comma separated names.")
    edit_parser.add_argument("--tz")
    edit_parser.add_argument("--rrule")

    occurrences_parser = subparsers.add_parser(
        "occurrences", help="Expand the occurrences of a series in a range."
    )
    occurrences_parser.add_argument("id")
    occurrences_parser.add_argument("--from", dest="range_start", required=True)
    occurrences_parser.add_argument("--to", dest="range_end", required=True)

    skip_parser = subparsers.add_parser(
        "skip", help="Skip a single occurrence of a series."
    )
    skip_parser.add_argument("id")
    skip_parser.add_argument("--date", required=True)

    return parser


def _split_participants(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def format_event(event: Event | RecurringEvent | Occurrence) -> str:
    """Return a single line describing the event."""
    line = f"{event.uid}  {encode_offset_datetime(event.start)}  {event.details.title}"
    if event.details.place:
        line += f"  [{event.details.place}]"
    if event.details.participants:
        line += f"  ({', '.join(event.details.participants)})"
    if isinstance(event, RecurringEvent):
        line += " {series}"
    elif isinstance(event, Occurrence):
        line += " {occurrence}"
    return line


def _print_events(
    events: Iterable[Event | RecurringEvent | Occurrence], out: TextIO
) -> None:
    lines = [format_event(event) for event in events]
    if not lines:
        print("No events.", file=out)
        return
    for line in lines:
        print(line, file=out)


def _run(store: EventStore, args: argparse.Namespace, out: TextIO) -> None:
    """Run a single command against the store."""
    if args.command == "add":
        event = store.create(
            args.title,
            args.start,
            end=args.end,
            place=args.place,
            participants=_split_participants(args.participants),
            tz=args.tz,
            rrule=args.rrule,
        )
        print(format_event(event), file=out)
    elif args.command == "today":
        _print_events(store.today(), out)
    elif args.command == "week":
        _print_events(store.week(), out)
    elif args.command == "list":
        if args.range_start is None and args.range_end is None:
            _print_events(store.list(), out)
        elif args.range_start is None or args.range_end is None:
            raise CalendarError("list requires both --from and --to")
        else:
            _print_events(store.list_range(args.range_start, args.range_end), out)
    elif args.command == "delete":
        store.delete(args.id)
        print(f"Deleted event {args.id}", file=out)
    elif args.command == "edit":
        updates: dict[str, Any] = {
            key: getattr(args, key)
            for key in ("title", "start", "end", "place", "tz", "rrule")
            if getattr(args, key) is not None
        }
        if args.participants is not None:
            updates["participants"] = _split_participants(args.participants)
        print(format_event(store.edit(args.id, **updates)), file=out)
    elif args.command == "occurrences":
        _print_events(
            store.occurrence_events(args.id, args.range_start, args.range_end), out
        )
    elif args.command == "skip":
        print(format_event(store.skip(args.id, args.date)), file=out)


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Run the command line tool and return the exit status."""
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except CalendarError as error:
        print(f"Error: {error}", file=err)
        return 1
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format=_LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=err,
    )

    if args.data_dir:
        settings = dataclasses.replace(
            settings, data_dir=pathlib.Path(args.data_dir).expanduser()
        )
    calendar_file = CalendarFile(settings.events_path)
    try:
        calendar = calendar_file.load()
        store = EventStore(calendar, default_duration=settings.default_duration)
        _run(store, args, out)
        if args.command in _MUTATING_COMMANDS:
            calendar_file.save(calendar)
    except CalendarError as error:
        _LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {error}", file=err)
        return 1
    return 0
