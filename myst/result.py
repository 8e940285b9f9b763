"""Query results: per-group timeseries with epoch bitmaps, and wire responses."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from itertools import islice

from myst.bitmap import Bitmap

__all__ = [
    "Timeseries",
    "ResponseTimeseries",
    "GroupedTimeseries",
    "TimeseriesResponse",
    "StringGroupedTimeseries",
    "StringTimeseriesResponse",
]


@dataclass
class Timeseries:
    """A timeseries hash and the epochs in which it was seen."""

    xxhash: int
    bitmap: Bitmap = field(default_factory=Bitmap)


@dataclass
class ResponseTimeseries:
    """A timeseries as sent to clients: hash and serialized epoch bitmap."""

    hash: int
    epoch_bitmap: bytes


@dataclass
class GroupedTimeseries:
    """Timeseries sharing one group, the group given as string hashes."""

    group: list[int] = field(default_factory=list)
    timeseries: list[ResponseTimeseries] = field(default_factory=list)


@dataclass
class TimeseriesResponse:
    """One streamed response message; the last one carries the dictionary."""

    grouped_timeseries: list[GroupedTimeseries] = field(default_factory=list)
    dictionary: dict[int, str] | None = None
    streams: int = 0


def _chunks(items: list[ResponseTimeseries], size: int) -> Iterator[list[ResponseTimeseries]]:
    iterator = iter(items)
    while chunk := list(islice(iterator, size)):
        yield chunk


@dataclass
class StringGroupedTimeseries:
    """Group strings and the timeseries in that group, keyed by hash."""

    group: list[str] = field(default_factory=list)
    timeseries: dict[int, Timeseries] = field(default_factory=dict)

    def add(self, xxhash: int, timeseries: Timeseries) -> None:
        """Insert a timeseries, merging epochs if the hash is already present."""
        current = self.timeseries.get(xxhash)
        if current is None:
            self.timeseries[xxhash] = timeseries
        else:
            current.bitmap.add_many(timeseries.bitmap)

    def add_all(self, timeseries: Mapping[int, Timeseries]) -> None:
        for xxhash, series in timeseries.items():
            self.add(xxhash, series)

    def convert(self, size: int) -> list[list[ResponseTimeseries]]:
        """Serialize the timeseries into batches of at most ``size`` entries.

        A size of zero or less puts everything into a single batch.
        """
        items = [
            ResponseTimeseries(xxhash, series.bitmap.serialize())
            for xxhash, series in self.timeseries.items()
        ]
        if not items:
            return []
        if size <= 0:
            return [items]
        return list(_chunks(items, size))


@dataclass
class StringTimeseriesResponse:
    """Grouped timeseries keyed by a hash of the group strings."""

    groups: dict[int, StringGroupedTimeseries] = field(default_factory=dict)
    dictionary: dict[int, str] = field(default_factory=dict)

    @classmethod
    def merge(cls, responses: Iterable["StringTimeseriesResponse"]) -> "StringTimeseriesResponse":
        """Combine responses, uniting the epoch bitmaps of shared timeseries."""
        merged = cls()
        for response in responses:
            for key, grouped in response.groups.items():
                target = merged.groups.get(key)
                if target is None:
                    target = StringGroupedTimeseries(group=list(grouped.group))
                    merged.groups[key] = target
                target.add_all(grouped.timeseries)
        return merged

    def extend(self, other: "StringTimeseriesResponse") -> None:
        """Take over the groups of ``other``; shared timeseries are replaced."""
        for key, grouped in other.groups.items():
            existing = self.groups.get(key)
            if existing is None:
                self.groups[key] = grouped
            else:
                existing.timeseries.update(grouped.timeseries)

    def __iter__(self) -> Iterator[tuple[int, StringGroupedTimeseries]]:
        return iter(self.groups.items())