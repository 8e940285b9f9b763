# myst

Building blocks for a time-series metadata query layer. The package parses
metadata queries and their filter trees. It provides a 32-bit integer bitmap
with the portable roaring wire format, combines bitmaps with set algebra, and
groups matching time series into batched responses. It also decodes the
length-prefixed binary records that feed segment generation.

The package has no dependencies outside the standard library.

## Install

    pip install .

For the tests:

    pip install ".[test]"
    pytest

## Queries (`myst.query`, `myst.query_filter`)

`Query.from_json(text)` parses a JSON query and returns a `Query` dataclass.
The dataclass has these fields: `from_`, `to`, `start`, `end`, `query_type`,
`limit`, `group` and `filter`.

- `type` must name a `QueryType`. The types are `TAG_KEYS`, `METRICS`,
  `TAG_KEYS_AND_VALUES` and `TIMESERIES`.
- `group` must be a list of strings.
- `start` is rounded down to a 1800-second boundary. `end` is rounded down and
  then moved on by 1800 seconds.
- For every type except `TIMESERIES`, the integers `from`, `to` and `limit` are
  required.
- A `TAG_KEYS_AND_VALUES` query with an empty group is rejected.

```python
from myst.query import Query, QueryType
from myst.query_filter import ChainFilter, MetricFilter

query = Query.from_json(
    '{"start": 1630599720, "end": 1630621920, "type": "TIMESERIES", "group": [],'
    ' "query": {"type": "Chain", "op": "AND", "filters": ['
    '{"type": "MetricLiteral", "metric": "exch.auct.Requests"}]}}'
)
assert query.query_type is QueryType.TIMESERIES
assert isinstance(query.filter, ChainFilter)
assert isinstance(query.filter.filters[0], MetricFilter)
```

`parse_filter(value)` builds a filter tree from decoded JSON. It matches the
`type` field without regard to case:

| `type`              | result                                      |
|---------------------|---------------------------------------------|
| `Chain`             | `ChainFilter(filters, op)`; `op` defaults to `"AND"` |
| `ExplicitTags`      | `ExplicitTagsFilter(filter, count)`         |
| `Not`               | `NotFilter(filter)`                         |
| `MetricLiteral`     | `MetricFilter(metric)`                      |
| `TagKeyLiteralOr`   | `TagKeyFilter(filter, FilterType.LITERAL)`  |
| `TagKeyRegex`       | `TagKeyFilter(filter, FilterType.REGEX)`    |
| `TagValueLiteralOr` | `TagValueFilter(tagKey, filter, FilterType.LITERAL)` |
| `TagValueRegex`     | `TagValueFilter(tagKey, filter, FilterType.REGEX)`   |

`count_tag_filters(filter)` counts the tag key and tag value filters. It looks
inside chains but not inside `NotFilter`. An `ExplicitTagsFilter` stores that
count.

Malformed queries and filters raise `QueryError`, which is a subclass of
`ValueError`.

`myst.filter` defines the enums `FilterName`, `FilterType` and `FilterOp`.

## Bitmaps (`myst.bitmap`)

`Bitmap` is a set of unsigned 32-bit integers. It supports the following:

- `add` and `add_many`
- `in` and `len()`
- iteration in ascending order, and `to_list()`
- `copy()`
- the in-place operations `or_inplace`, `and_inplace` and `andnot_inplace`
- `and_cardinality(other)`

`serialize()` writes the portable roaring format using array and bitset
containers. `Bitmap.deserialize(data)` reads that format, including run
containers. Malformed data raises `ValueError`.

## Hashing (`myst.hashing`)

`xxhash64(data, seed=0)` returns the unsigned 64-bit XXH64 hash of `data`.
`hash_string(text)` hashes the UTF-8 bytes of `text` with seed 0 and returns
the result as a signed 64-bit integer.

## Results and aggregation (`myst.result`, `myst.aggregation`)

`StringTimeseriesResponse` maps group keys to `StringGroupedTimeseries`. Each
`StringGroupedTimeseries` holds group strings and `Timeseries` entries, each
of which is a hash plus an epoch `Bitmap`.

- `StringTimeseriesResponse.merge(responses)` combines several responses. When
  the same time series appears in more than one, their epoch bitmaps are united.
- `extend(other)` takes over the groups of `other`. A time series present in
  both is replaced by the one from `other`.
- `StringGroupedTimeseries.convert(size)` serializes the time series into
  batches of `ResponseTimeseries`, at most `size` per batch.

`myst.aggregation` provides the following functions:

- `union(bitmaps)` and `intersection(bitmaps, not_bitmaps)`. The intersection of
  no bitmaps is empty.
- `docstore_blocks(elements, block_size)` buckets ids by `id // block_size`.
- `group_values(tags, group_key_ids, dictionary)` resolves group-by values.
  A key that is missing gives `"__no_data__"`.
- `build_responses(result, response_size)` yields one `TimeseriesResponse` per
  batch of each group, with the group given as `hash_string` hashes. It then
  yields a final response whose `dictionary` maps those hashes back to the
  strings.

## Caching (`myst.cache`)

`LruCache(capacity)` is a thread-safe LRU map with `put`, `get` and `len()`.
`Cache.get_sharded_cache(shard)` returns the `ShardedCache` for a shard and
creates it the first time. Each `ShardedCache` holds three bounded caches:

- docstores, up to 200 entries
- dictionaries, up to 48 entries
- epoch bitmaps, up to 48 entries

## Ingest records (`myst.record`)

A record body has the following layout, in order:

1. a 4-byte header
2. a big-endian 64-bit hash
3. a 2-byte marker
4. zero-terminated key/value tag strings, ending with a `1` byte
5. a 2-byte marker
6. the zero-terminated metric name

`Record.parse(buf)` decodes one body. `iter_records(stream)` reads 4-byte
big-endian length-prefixed bodies from a binary stream:

- A body that cannot be decoded is logged and yielded as far as it was read.
- A truncated body raises `RecordError`.

`read_gzip_records(data)` does the same for gzip-compressed bytes.
`shard_index(record, num_shards)` returns `abs(xx_hash) % num_shards`.

The helpers `read_int`, `read_long`, `get_len` and `get_next_string` are also
public.

## Metrics and logging (`myst.metrics`)

Subclass `MetricsReporter`, implement `count` and `gauge`, and install an
instance with `set_metrics_reporter`. Only the first reporter installed is
kept; later calls return `False`. `metrics_count` and `metrics_gauge` forward to
the installed reporter and do nothing when there is none.

`setup_logger(filename)` sends INFO and above from every logger to a file. It
returns the handler it installed.

## What this package does not do

The package has no storage of its own. It does not write, read or compact
segment files, and it cannot evaluate filters against stored segments. It does
not run a query server or any command-line program. It does not talk to a
remote object store to upload or download segments. The pieces above are the
query, filtering, grouping and record-decoding logic that such components
would build on.