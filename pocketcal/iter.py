"""Iterators for building an ordered view of a calendar.

Single events and the expanded instances of recurring series are wrapped in
items keyed by their timespan. Every source is already in start order, so the
sources are merged lazily instead of being sorted, and an instance of a series
is only built once a caller reads it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
import datetime
import heapq
import logging
from typing import Any, Generic, TypeVar

from .timespan import Timespan

__all__ = [
    "ItemAdapter",
    "LazySpanItem",
    "MergedIterable",
    "SeriesIterable",
    "SpanItem",
    "SpanTimeline",
    "ValueSpanItem",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

ItemAdapter = Callable[[str], T]
"""Builds the item for an instance of a series from its start time."""


class SpanItem(Generic[T], ABC):
    """An item ordered by its timespan rather than by its own fields."""

    def __init__(self, span: Timespan) -> None:
        """Initialize SpanItem."""
        self._span = span

    @property
    def span(self) -> Timespan:
        """Return the timespan the item is ordered by."""
        return self._span

    @property
    @abstractmethod
    def item(self) -> T:
        """Return the wrapped item."""

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, SpanItem):
            return NotImplemented
        return self._span < other.span


class ValueSpanItem(SpanItem[T]):
    """A SpanItem wrapping an existing value."""

    def __init__(self, span: Timespan, value: T) -> None:
        """Initialize ValueSpanItem."""
        super().__init__(span)
        self._value = value

    @property
    def item(self) -> T:
        return self._value


class LazySpanItem(SpanItem[T]):
    """A SpanItem whose value is built on first access and then kept."""

    def __init__(self, span: Timespan, build: Callable[[], T]) -> None:
        """Initialize LazySpanItem."""
        super().__init__(span)
        self._build: Callable[[], T] | None = build
        self._value: T | None = None

    @property
    def item(self) -> T:
        if self._build is not None:
            self._value = self._build()
            self._build = None
        return self._value  # type: ignore[return-value]


class SeriesIterable(Iterable[T]):
    """Items for each instance of a series, in the order of the start times."""

    def __init__(self, adapter: ItemAdapter[T], starts: Iterable[str]) -> None:
        """Initialize SeriesIterable."""
        self._adapter = adapter
        self._starts = starts

    def __iter__(self) -> Iterator[T]:
        return map(self._adapter, self._starts)


class MergedIterable(Iterable[T]):
    """A single ordered view over several individually ordered iterables."""

    def __init__(self, iters: list[Iterable[T]]) -> None:
        """Initialize MergedIterable."""
        self._iters = iters

    def __iter__(self) -> Iterator[T]:
        return heapq.merge(*self._iters)


class SpanTimeline(Iterable[T]):
    """Items of a calendar in the order of their timespans."""

    def __init__(self, items: Iterable[SpanItem[T]]) -> None:
        """Initialize SpanTimeline."""
        self._items = items

    def __iter__(self) -> Iterator[T]:
        for span_item in self._items:
            yield span_item.item

    def overlapping(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> Iterator[T]:
        """Return the items active at any point between start and end inclusive."""
        window = Timespan.of(start, end)
        for span_item in self._items:
            if span_item.span.start > window.end:
                return
            if span_item.span.overlaps(window):
                yield span_item.item
