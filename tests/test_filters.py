import pytest

from ngspairmap import Orientation, PairRecord
from ngspairmap.filters import deduplicate, filter_pairs, in_distance_window, sort_pairs


def pair(replicon="chr1", loc1=10, loc2=60, distance=51, direction=1) -> PairRecord:
    return PairRecord(replicon, "ACGT", "TTGA", loc1, loc2, distance, direction)


def test_distance_window_bounds_are_exclusive():
    assert not in_distance_window(pair(distance=20))
    assert in_distance_window(pair(distance=21))
    assert in_distance_window(pair(distance=1999))
    assert not in_distance_window(pair(distance=2000))
    assert in_distance_window(pair(distance=5000), max_distance=None)


def test_filter_pairs_counts():
    records = [
        pair(distance=15),
        pair(distance=300),
        pair(distance=300, direction=-1),
        pair(replicon="chr2", distance=300),
        pair(distance=5000),
    ]
    stats = {}
    kept = list(
        filter_pairs(
            records,
            min_distance=20,
            max_distance=2000,
            orientations=[Orientation.FORWARD],
            replicons=["chr1"],
            stats=stats,
        )
    )
    assert kept == [records[1]]
    assert stats == {
        "records_in": 5,
        "records_kept": 1,
        "records_skipped_distance": 2,
        "records_skipped_orientation": 1,
        "records_skipped_replicon": 1,
    }


def test_filter_pairs_without_criteria_keeps_everything():
    records = [pair(distance=0), pair(direction=9)]
    assert list(filter_pairs(records)) == records


def test_filter_pairs_rejects_inverted_window():
    with pytest.raises(ValueError):
        filter_pairs([], min_distance=100, max_distance=50)


def test_deduplicate_keeps_first_seen_order():
    a, b = pair(loc1=1), pair(loc1=2)
    stats = {}
    out = list(deduplicate([a, b, pair(loc1=1), b], stats=stats))
    assert out == [a, b]
    assert stats["records_duplicate"] == 2


def test_sort_pairs_uses_leftmost_location():
    forward = pair(loc1=50, loc2=90)
    reverse = pair(loc1=80, loc2=40, direction=-1)
    other = pair(replicon="chr0", loc1=500, loc2=600)
    assert sort_pairs([forward, reverse, other]) == [other, reverse, forward]
