"""Query filter tree and its construction from decoded JSON."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from myst.filter import FilterType

__all__ = [
    "QueryError",
    "ChainFilter",
    "ExplicitTagsFilter",
    "NotFilter",
    "MetricFilter",
    "TagKeyFilter",
    "TagValueFilter",
    "QueryFilter",
    "parse_filter",
    "count_tag_filters",
]


class QueryError(ValueError):
    """Raised when a query or one of its filters is malformed."""


@dataclass
class ChainFilter:
    """Combines sub-filters with ``op`` ("AND" or "OR")."""

    filters: list["QueryFilter"] = field(default_factory=list)
    op: str = "AND"


@dataclass
class ExplicitTagsFilter:
    """Matches only timeseries carrying exactly ``count`` tags."""

    filter: "QueryFilter"
    count: int


@dataclass
class NotFilter:
    """Excludes what the inner filter matches."""

    filter: "QueryFilter"


@dataclass
class MetricFilter:
    metric: str
    filter_type: FilterType = FilterType.LITERAL


@dataclass
class TagKeyFilter:
    filter: str
    filter_type: FilterType


@dataclass
class TagValueFilter:
    key: str
    filter: str
    filter_type: FilterType


QueryFilter = Union[
    ChainFilter, ExplicitTagsFilter, NotFilter, MetricFilter, TagKeyFilter, TagValueFilter
]


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def _require_str(value: Any, key: str, message: str) -> str:
    item = _get(value, key)
    if not isinstance(item, str):
        raise QueryError(message)
    return item


def parse_filter(value: Any) -> QueryFilter:
    """Build a filter tree from a decoded JSON object."""
    kind = _require_str(value, "type", "Error converting to filter for field: type").lower()

    if kind == "chain":
        op = _get(value, "op")
        if not isinstance(op, str):
            op = "AND"
        filters = _get(value, "filters")
        if not isinstance(filters, list):
            raise QueryError("Error converting to filter for field: filters")
        return ChainFilter([parse_filter(item) for item in filters], op)

    if kind == "explicittags":
        inner = parse_filter(_get(value, "filter"))
        return ExplicitTagsFilter(inner, count_tag_filters(inner))

    if kind == "not":
        return NotFilter(parse_filter(_get(value, "filter")))

    if kind == "metricliteral":
        metric = _require_str(
            value, "metric", "Error converting to filter field: metric in metricliteral"
        )
        return MetricFilter(metric, FilterType.LITERAL)

    if kind in ("tagkeyliteralor", "tagkeyregex"):
        pattern = _require_str(
            value, "filter", f"Error converting to filter field: filter for {kind}"
        )
        filter_type = FilterType.LITERAL if kind == "tagkeyliteralor" else FilterType.REGEX
        return TagKeyFilter(pattern, filter_type)

    if kind in ("tagvalueliteralor", "tagvalueregex"):
        key = _require_str(
            value, "tagKey", f"Error converting to filter field: tagKey for {kind}"
        )
        pattern = _require_str(
            value, "filter", f"Error converting to filter field: filter for {kind}"
        )
        filter_type = FilterType.LITERAL if kind == "tagvalueliteralor" else FilterType.REGEX
        return TagValueFilter(key, pattern, filter_type)

    raise QueryError("Invalid Query Filter")


def count_tag_filters(filter: QueryFilter) -> int:
    """Count tag key and tag value filters, descending into chains only."""
    if isinstance(filter, (TagKeyFilter, TagValueFilter)):
        return 1
    if isinstance(filter, ChainFilter):
        return sum(count_tag_filters(sub) for sub in filter.filters)
    return 0