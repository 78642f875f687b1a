"""Selection helpers for streams of pair records.

The distance defaults mirror the mapper's acceptance window: a pair is kept
when ``20 < distance < 2000``. Both bounds are exclusive.
"""

from __future__ import annotations

from typing import Collection, Dict, Iterable, Iterator, List, Optional, Set

from .models import PairRecord

DEFAULT_MIN_DISTANCE = 20
DEFAULT_MAX_DISTANCE = 2000


def in_distance_window(
    record: PairRecord,
    min_distance: Optional[int] = DEFAULT_MIN_DISTANCE,
    max_distance: Optional[int] = DEFAULT_MAX_DISTANCE,
) -> bool:
    if min_distance is not None and record.distance <= min_distance:
        return False
    if max_distance is not None and record.distance >= max_distance:
        return False
    return True


def filter_pairs(
    records: Iterable[PairRecord],
    *,
    min_distance: Optional[int] = None,
    max_distance: Optional[int] = None,
    orientations: Optional[Collection[int]] = None,
    replicons: Optional[Collection[str]] = None,
    stats: Optional[Dict[str, int]] = None,
) -> Iterator[PairRecord]:
    """Yield the records passing every given criterion; None disables a criterion."""
    if min_distance is not None and max_distance is not None and max_distance <= min_distance:
        raise ValueError("max_distance must be > min_distance")

    counts = stats if stats is not None else {}
    for key in (
        "records_in",
        "records_kept",
        "records_skipped_distance",
        "records_skipped_orientation",
        "records_skipped_replicon",
    ):
        counts.setdefault(key, 0)

    wanted_dirs: Optional[Set[int]] = None if orientations is None else {int(o) for o in orientations}
    wanted_reps: Optional[Set[str]] = None if replicons is None else set(replicons)
    return _filter(records, min_distance, max_distance, wanted_dirs, wanted_reps, counts)


def _filter(
    records: Iterable[PairRecord],
    min_distance: Optional[int],
    max_distance: Optional[int],
    wanted_dirs: Optional[Set[int]],
    wanted_reps: Optional[Set[str]],
    counts: Dict[str, int],
) -> Iterator[PairRecord]:
    for record in records:
        counts["records_in"] += 1
        if not in_distance_window(record, min_distance, max_distance):
            counts["records_skipped_distance"] += 1
            continue
        if wanted_dirs is not None and record.direction not in wanted_dirs:
            counts["records_skipped_orientation"] += 1
            continue
        if wanted_reps is not None and record.replicon_name not in wanted_reps:
            counts["records_skipped_replicon"] += 1
            continue
        counts["records_kept"] += 1
        yield record


def deduplicate(
    records: Iterable[PairRecord],
    *,
    stats: Optional[Dict[str, int]] = None,
) -> Iterator[PairRecord]:
    """Drop records equal (field by field) to one already seen; keeps first-seen order."""
    counts = stats if stats is not None else {}
    counts.setdefault("records_duplicate", 0)

    seen: Set[PairRecord] = set()
    for record in records:
        if record in seen:
            counts["records_duplicate"] += 1
            continue
        seen.add(record)
        yield record


def sort_pairs(records: Iterable[PairRecord]) -> List[PairRecord]:
    """Sort by replicon, then by the leftmost and rightmost location, then direction."""

    def key(r: PairRecord):
        lo = min(r.read1_location, r.read2_location)
        hi = max(r.read1_location, r.read2_location)
        return (r.replicon_name, lo, hi, r.direction)

    return sorted(records, key=key)
