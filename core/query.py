from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Iterable, List, Sequence, Tuple

from core.filters import FilterSpec, SortSpec, normalize_year
from core.status import classify_status

if TYPE_CHECKING:
    from core.data import CapsuleRecord


logger = logging.getLogger(__name__)


def matches_filter(record: "CapsuleRecord", filter_spec: FilterSpec) -> bool:
    year = filter_spec.year_filter
    if year and str(record.year) != str(year):
        return False
    q = (filter_spec.search_text or "").strip().casefold()
    if not q:
        return True
    return q in record.name.casefold() or q in record.location.casefold()


def _column_key(value: Any) -> Tuple[int, Any]:
    # Absent values sort as the lowest value of the column.
    if value is None:
        return (0, "")
    return (1, value)


def sort_records(records: Iterable["CapsuleRecord"], sort_spec: SortSpec, now: date) -> List["CapsuleRecord"]:
    """Order by status bucket (Planned, Active, Removed), then by the chosen column.

    The direction only applies within a bucket. ``sorted`` is stable, so rows with
    equal keys keep their input order in either direction.
    """
    ranked = [(classify_status(r, now).rank, r) for r in records]

    def compare(a: Tuple[int, "CapsuleRecord"], b: Tuple[int, "CapsuleRecord"]) -> int:
        if a[0] != b[0]:
            return a[0] - b[0]
        av = _column_key(getattr(a[1], sort_spec.column))
        bv = _column_key(getattr(b[1], sort_spec.column))
        cmp = (av > bv) - (av < bv)
        return -cmp if sort_spec.descending else cmp

    return [r for _, r in sorted(ranked, key=cmp_to_key(compare))]


def get_filtered_sorted_records(
    all_records: Sequence["CapsuleRecord"],
    filter_spec: FilterSpec,
    sort_spec: SortSpec,
    now: date,
) -> List["CapsuleRecord"]:
    # Normalized once per pass; matches_filter expects the canonical year string.
    filter_spec = replace(filter_spec, year_filter=normalize_year(filter_spec.year_filter))
    filtered = [r for r in all_records if matches_filter(r, filter_spec)]
    logger.debug(
        "Query pass as of %s: %d/%d records match %s, sorted by %s %s",
        now.isoformat(),
        len(filtered),
        len(all_records),
        filter_spec,
        sort_spec.column,
        sort_spec.direction,
    )
    return sort_records(filtered, sort_spec, now)


def get_distinct_years(all_records: Iterable["CapsuleRecord"]) -> List[int]:
    return sorted({r.year for r in all_records}, reverse=True)
