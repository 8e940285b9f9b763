"""Bitmap set algebra, docstore blocking, grouping and response building."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence

from myst.bitmap import Bitmap
from myst.hashing import hash_string
from myst.result import GroupedTimeseries, StringTimeseriesResponse, TimeseriesResponse

__all__ = [
    "NO_DATA",
    "union",
    "intersection",
    "docstore_blocks",
    "group_values",
    "build_responses",
]

NO_DATA = "__no_data__"

_log = logging.getLogger(__name__)


def union(bitmaps: Sequence[Bitmap]) -> Bitmap:
    """Return a new bitmap holding every value of every input."""
    result = Bitmap()
    for bitmap in bitmaps:
        result.or_inplace(bitmap)
    return result


def intersection(
    bitmaps: Sequence[Bitmap], not_bitmaps: Iterable[Bitmap] | None = None
) -> Bitmap:
    """Intersect ``bitmaps`` and remove everything in ``not_bitmaps``.

    With no input bitmaps the result is empty.
    """
    if not bitmaps:
        result = Bitmap()
    else:
        first, *rest = bitmaps
        result = first.copy()
        for bitmap in rest:
            result.and_inplace(bitmap)
    for excluded in not_bitmaps or ():
        result.andnot_inplace(excluded)
    return result


def docstore_blocks(elements: Iterable[int], block_size: int) -> dict[int, list[int]]:
    """Bucket timeseries ids by the docstore block that holds them."""
    if block_size <= 0:
        raise ValueError(f"docstore block size must be positive: {block_size}")
    blocks: dict[int, list[int]] = {}
    for element in elements:
        blocks.setdefault(element // block_size, []).append(element)
    return blocks


def group_values(
    tags: Mapping[int, int], group_key_ids: Iterable[int], dictionary: Mapping[int, str]
) -> list[str]:
    """Resolve the group-by values of one timeseries, in group-key order.

    Keys the timeseries lacks yield ``NO_DATA``; a value id missing from the
    dictionary raises KeyError.
    """
    return [
        dictionary[tags[key_id]] if key_id in tags else NO_DATA for key_id in group_key_ids
    ]


def build_responses(
    result: StringTimeseriesResponse, response_size: int
) -> Iterator[TimeseriesResponse]:
    """Yield one response per batch of each group, then a final dictionary response."""
    dictionary: dict[int, str] = {}
    for _, grouped in result:
        hashes = []
        for value in grouped.group:
            value_hash = hash_string(value)
            dictionary.setdefault(value_hash, value)
            hashes.append(value_hash)
        for batch in grouped.convert(response_size):
            yield TimeseriesResponse(
                grouped_timeseries=[GroupedTimeseries(group=list(hashes), timeseries=batch)]
            )
    _log.debug("Built dictionary with %d entries", len(dictionary))
    yield TimeseriesResponse(grouped_timeseries=[], dictionary=dictionary)