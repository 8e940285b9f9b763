"""Metadata query definitions parsed from JSON."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any

from myst.query_filter import QueryError, QueryFilter, parse_filter

__all__ = ["QueryType", "Query", "SEGMENT_ALIGNMENT"]

SEGMENT_ALIGNMENT = 1800
_U64_LIMIT = 1 << 64
_U32_MASK = 0xFFFFFFFF


class QueryType(enum.Enum):
    TAG_KEYS = "TAG_KEYS"
    METRICS = "METRICS"
    TAG_KEYS_AND_VALUES = "TAG_KEYS_AND_VALUES"
    TIMESERIES = "TIMESERIES"


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def _as_u64(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if 0 <= value < _U64_LIMIT:
        return value
    return None


def _require_u64(data: Any, key: str, message: str) -> int:
    number = _as_u64(_get(data, key))
    if number is None:
        raise QueryError(message)
    return number


@dataclass
class Query:
    """A metadata query over a time range, with filter and grouping."""

    from_: int
    to: int
    start: int
    end: int
    query_type: QueryType
    limit: int
    group: list[str] = field(default_factory=list)
    filter: QueryFilter | None = None

    @classmethod
    def from_json(cls, text: str | bytes) -> "Query":
        """Parse a query; start and end are aligned to 30-minute boundaries."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise QueryError(f"Invalid query JSON: {exc}") from exc

        group = _get(data, "group")
        if not isinstance(group, list):
            raise QueryError("Group not found in query")
        group_by = []
        for item in group:
            if not isinstance(item, str):
                raise QueryError("Cannnot convert to string")
            group_by.append(item)

        type_name = _get(data, "type")
        if not isinstance(type_name, str):
            raise QueryError("type not found in query")
        try:
            query_type = QueryType[type_name]
        except KeyError:
            raise QueryError(f"Unknown query type: {type_name}") from None

        from_ = to = limit = 0
        if query_type is not QueryType.TIMESERIES:
            from_ = _require_u64(data, "from", "Cannot convert from to long") & _U32_MASK
            to = _require_u64(data, "to", "Cannnot convert `to` to long") & _U32_MASK
            limit = _require_u64(data, "limit", "Cannnot convert limit to int") & _U32_MASK

        start = _require_u64(data, "start", "Cannot convert to long")
        start -= start % SEGMENT_ALIGNMENT
        end = _require_u64(data, "end", "Cannot convert to long")
        end = end - end % SEGMENT_ALIGNMENT + SEGMENT_ALIGNMENT

        query = cls(
            from_=from_,
            to=to,
            start=start,
            end=end,
            query_type=query_type,
            limit=limit,
            group=group_by,
            filter=parse_filter(_get(data, "query")),
        )
        if query.query_type is QueryType.TAG_KEYS_AND_VALUES and not query.group:
            raise QueryError("Group is empty for TAG KEYS AND VALUES QUERY")
        return query