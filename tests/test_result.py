from myst.bitmap import Bitmap
from myst.result import (
    StringGroupedTimeseries,
    StringTimeseriesResponse,
    Timeseries,
)


def _group(values, series):
    grouped = StringGroupedTimeseries(group=list(values))
    for xxhash, epochs in series.items():
        grouped.add(xxhash, Timeseries(xxhash, Bitmap(epochs)))
    return grouped


def test_add_merges_epochs_of_same_hash():
    grouped = StringGroupedTimeseries()
    grouped.add(7, Timeseries(7, Bitmap([100])))
    grouped.add(7, Timeseries(7, Bitmap([200])))
    assert list(grouped.timeseries) == [7]
    assert grouped.timeseries[7].bitmap.to_list() == [100, 200]


def test_add_all_keeps_distinct_hashes():
    grouped = StringGroupedTimeseries()
    grouped.add_all({1: Timeseries(1, Bitmap([5])), 2: Timeseries(2, Bitmap([6]))})
    assert sorted(grouped.timeseries) == [1, 2]


def test_convert_batches_respect_size_and_cover_everything():
    grouped = _group(["bar"], {h: [h] for h in range(1, 6)})
    batches = grouped.convert(2)
    assert all(len(batch) <= 2 for batch in batches)
    assert all(len(batch) == 2 for batch in batches[:-1])
    hashes = [ts.hash for batch in batches for ts in batch]
    assert sorted(hashes) == [1, 2, 3, 4, 5]


def test_convert_serializes_bitmaps_round_trip():
    grouped = _group([], {42: [1630599720, 1630601520]})
    (batch,) = grouped.convert(10)
    (series,) = batch
    assert series.hash == 42
    assert Bitmap.deserialize(series.epoch_bitmap).to_list() == [1630599720, 1630601520]


def test_convert_non_positive_size_gives_single_batch():
    grouped = _group([], {h: [h] for h in range(1, 4)})
    batches = grouped.convert(0)
    assert len(batches) == 1
    assert len(batches[0]) == len(grouped.timeseries)


def test_convert_empty_group_has_no_batches():
    assert StringGroupedTimeseries().convert(5) == []


def test_merge_unites_bitmaps_and_keeps_first_group():
    first = StringTimeseriesResponse(groups={9: _group(["bar", "re"], {1: [10]})})
    second = StringTimeseriesResponse(groups={9: _group(["other"], {1: [20], 2: [30]})})
    merged = StringTimeseriesResponse.merge([first, second])
    assert merged.groups[9].group == ["bar", "re"]
    assert merged.groups[9].timeseries[1].bitmap.to_list() == [10, 20]
    assert merged.groups[9].timeseries[2].bitmap.to_list() == [30]


def test_merge_of_nothing_is_empty():
    merged = StringTimeseriesResponse.merge([])
    assert merged.groups == {}
    assert merged.dictionary == {}


def test_extend_replaces_shared_timeseries():
    base = StringTimeseriesResponse(groups={1: _group(["a"], {5: [10]})})
    other = StringTimeseriesResponse(
        groups={1: _group(["a"], {5: [20]}), 2: _group(["b"], {6: [30]})}
    )
    base.extend(other)
    assert base.groups[1].timeseries[5].bitmap.to_list() == [20]
    assert base.groups[2].group == ["b"]


def test_iter_yields_group_items():
    grouped = _group(["x"], {3: [4]})
    response = StringTimeseriesResponse(groups={11: grouped})
    assert list(response) == [(11, grouped)]