import json

import pytest

from myst.filter import FilterType
from myst.query import Query, QueryType
from myst.query_filter import ChainFilter, MetricFilter, QueryError, TagValueFilter

SOURCE_QUERY = (
    '{"from":0,"to":1,"start":1630599720,"end":1630621920,"order":"ASCENDING",'
    '"type":"TIMESERIES","group":[],"namespace":"ssp","query":{"filters":['
    '{"filter":".*","tagKey":"flid","type":"TagValueRegex"},'
    '{"filter":".*","tagKey":"InstanceId","type":"TagValueRegex"},'
    '{"metric":"exch.auct.Requests","type":"MetricLiteral"}],"op":"AND","type":"Chain"}}'
)


def make(**overrides):
    body = {
        "from": 0,
        "to": 1,
        "limit": 10,
        "start": 1630599720,
        "end": 1630621920,
        "type": "METRICS",
        "group": [],
        "query": {"type": "MetricLiteral", "metric": "metric0"},
    }
    body.update(overrides)
    return json.dumps(body)


def test_source_query():
    query = Query.from_json(SOURCE_QUERY)
    assert query.query_type is QueryType.TIMESERIES
    assert query.start == 1630598400
    assert query.end == 1630623600
    assert (query.from_, query.to, query.limit) == (0, 0, 0)
    assert query.group == []
    assert query.filter == ChainFilter(
        [
            TagValueFilter("flid", ".*", FilterType.REGEX),
            TagValueFilter("InstanceId", ".*", FilterType.REGEX),
            MetricFilter("exch.auct.Requests", FilterType.LITERAL),
        ],
        "AND",
    )


def test_time_range_alignment_invariants():
    query = Query.from_json(make(start=1630599720, end=1630621920))
    assert query.start % 1800 == 0 and query.end % 1800 == 0
    assert query.start <= 1630599720 < query.start + 1800
    assert 1630621920 < query.end <= 1630621920 + 1800


def test_non_timeseries_reads_from_to_limit():
    query = Query.from_json(make(group=["foo", "do"]))
    assert query.query_type is QueryType.METRICS
    assert (query.from_, query.to, query.limit) == (0, 1, 10)
    assert query.group == ["foo", "do"]


def test_tag_keys_and_values_requires_group():
    with pytest.raises(QueryError, match="Group is empty"):
        Query.from_json(make(type="TAG_KEYS_AND_VALUES"))
    query = Query.from_json(make(type="TAG_KEYS_AND_VALUES", group=["foo"]))
    assert query.group == ["foo"]


@pytest.mark.parametrize(
    "text, message",
    [
        (make(group=None), "Group not found in query"),
        (make(group=["a", 1]), "Cannnot convert to string"),
        (make(type=None), "type not found in query"),
        (make(type="UNKNOWN"), "Unknown query type"),
        (make(**{"from": -1}), "Cannot convert from to long"),
        (make(to="1"), "Cannnot convert `to` to long"),
        (make(limit=1.5), "Cannnot convert limit to int"),
        (make(start=-5), "Cannot convert to long"),
        (make(end=None), "Cannot convert to long"),
        (make(query={"type": "bogus"}), "Invalid Query Filter"),
        ("not json", "Invalid query JSON"),
    ],
)
def test_invalid_queries(text, message):
    with pytest.raises(QueryError, match=message):
        Query.from_json(text)


def test_timeseries_ignores_missing_from():
    body = json.loads(make(type="TIMESERIES"))
    del body["from"], body["to"], body["limit"]
    query = Query.from_json(json.dumps(body))
    assert query.from_ == 0 and query.limit == 0