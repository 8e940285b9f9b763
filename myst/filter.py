"""Kinds of query filters, how they match and how they combine."""

from __future__ import annotations

import enum

__all__ = ["FilterName", "FilterType", "FilterOp"]


class FilterName(enum.Enum):
    """What a filter applies to."""

    METRIC_FILTER = "metric"
    TAG_KEY_FILTER = "tag_key"
    TAG_VALUE_FILTER = "tag_value"
    CHAIN_FILTER = "chain"


class FilterType(enum.Enum):
    """How a filter's pattern is matched."""

    REGEX = "regex"
    LITERAL = "literal"


class FilterOp(enum.Enum):
    """How the members of a chain filter are combined."""

    AND = "AND"
    OR = "OR"