import pytest

from myst.filter import FilterType
from myst.query_filter import (
    ChainFilter,
    ExplicitTagsFilter,
    MetricFilter,
    NotFilter,
    QueryError,
    TagKeyFilter,
    TagValueFilter,
    count_tag_filters,
    parse_filter,
)


def test_chain_from_source_query():
    value = {
        "filters": [
            {"filter": ".*", "tagKey": "flid", "type": "TagValueRegex"},
            {"filter": ".*", "tagKey": "InstanceId", "type": "TagValueRegex"},
            {"metric": "exch.auct.Requests", "type": "MetricLiteral"},
        ],
        "op": "AND",
        "type": "Chain",
    }
    assert parse_filter(value) == ChainFilter(
        [
            TagValueFilter("flid", ".*", FilterType.REGEX),
            TagValueFilter("InstanceId", ".*", FilterType.REGEX),
            MetricFilter("exch.auct.Requests", FilterType.LITERAL),
        ],
        "AND",
    )


def test_not_filter_inside_chain():
    value = {
        "type": "Chain",
        "filters": [
            {"type": "MetricLiteral", "metric": "metric0"},
            {
                "type": "NOT",
                "filter": {"type": "TagValueLiteralOr", "tagKey": "foo", "filter": "bar"},
            },
        ],
    }
    parsed = parse_filter(value)
    assert parsed == ChainFilter(
        [
            MetricFilter("metric0", FilterType.LITERAL),
            NotFilter(TagValueFilter("foo", "bar", FilterType.LITERAL)),
        ],
        "AND",
    )
    assert count_tag_filters(parsed) == 0


def test_explicit_tags_counts_tag_filters():
    value = {
        "type": "ExplicitTags",
        "filter": {
            "type": "Chain",
            "op": "AND",
            "filters": [
                {"type": "MetricLiteral", "metric": "metric0"},
                {"type": "TagValueLiteralOr", "tagKey": "foo", "filter": "bar"},
                {"type": "TagValueLiteralOr", "tagKey": "do", "filter": "re"},
                {"type": "TagValueLiteralOr", "tagKey": "hi", "filter": "hello"},
            ],
        },
    }
    parsed = parse_filter(value)
    assert isinstance(parsed, ExplicitTagsFilter)
    assert parsed.count == 3
    assert parsed.filter.filters[3] == TagValueFilter("hi", "hello", FilterType.LITERAL)


def test_tag_key_filters():
    assert parse_filter({"type": "TagKeyLiteralOr", "filter": "foo"}) == TagKeyFilter(
        "foo", FilterType.LITERAL
    )
    assert parse_filter({"type": "tagkeyregex", "filter": "f.*"}) == TagKeyFilter(
        "f.*", FilterType.REGEX
    )


def test_chain_op_defaults_to_and_and_keeps_or():
    assert parse_filter({"type": "chain", "filters": []}).op == "AND"
    assert parse_filter({"type": "chain", "op": "OR", "filters": []}).op == "OR"


def test_count_descends_chains_only():
    nested = ChainFilter(
        [
            TagKeyFilter("a", FilterType.LITERAL),
            ChainFilter([TagValueFilter("k", "v", FilterType.REGEX)]),
            NotFilter(TagKeyFilter("b", FilterType.LITERAL)),
        ]
    )
    assert count_tag_filters(nested) == 2
    assert count_tag_filters(MetricFilter("m")) == 0


@pytest.mark.parametrize(
    "value, message",
    [
        ({}, "Error converting to filter for field: type"),
        (None, "Error converting to filter for field: type"),
        ({"type": 3}, "Error converting to filter for field: type"),
        ({"type": "bogus"}, "Invalid Query Filter"),
        ({"type": "chain"}, "Error converting to filter for field: filters"),
        (
            {"type": "MetricLiteral"},
            "Error converting to filter field: metric in metricliteral",
        ),
        (
            {"type": "TagValueRegex", "filter": ".*"},
            "Error converting to filter field: tagKey for tagvalueregex",
        ),
        (
            {"type": "TagValueLiteralOr", "tagKey": "foo"},
            "Error converting to filter field: filter for tagvalueliteralor",
        ),
        ({"type": "not"}, "Error converting to filter for field: type"),
    ],
)
def test_invalid_filters(value, message):
    with pytest.raises(QueryError) as info:
        parse_filter(value)
    assert str(info.value) == message