from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

SORTABLE_COLUMNS: Tuple[str, ...] = ("name", "year", "introduced_date", "sale_start_date", "removed_date")
SORT_DIRECTIONS: Tuple[str, ...] = ("asc", "desc")
DEFAULT_SORT_COLUMN = "introduced_date"
DEFAULT_SORT_DIRECTION = "desc"


@dataclass(frozen=True)
class FilterSpec:
    search_text: str = ""
    year_filter: str = ""


@dataclass(frozen=True)
class SortSpec:
    column: str = DEFAULT_SORT_COLUMN
    direction: str = DEFAULT_SORT_DIRECTION

    def __post_init__(self) -> None:
        if self.column not in SORTABLE_COLUMNS:
            raise ValueError(f"Unsortable column {self.column!r}; expected one of {SORTABLE_COLUMNS}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction {self.direction!r}")

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


DEFAULT_SORT = SortSpec()


def normalize_year(value: object) -> str:
    """Year filter as its canonical string form; "" means all years."""
    if value is None:
        return ""
    s = str(value).strip()
    if not s:
        return ""
    try:
        return str(int(s))
    except ValueError:
        logger.warning("Ignoring non-numeric year filter %r", value)
        return ""


def normalize_filters(raw: Optional[dict]) -> FilterSpec:
    raw = raw or {}
    search_text = str(raw.get("search_text") or "").strip()
    return FilterSpec(search_text=search_text, year_filter=normalize_year(raw.get("year_filter")))


def normalize_sort(raw: Optional[dict]) -> SortSpec:
    raw = raw or {}
    column = str(raw.get("column") or DEFAULT_SORT_COLUMN)
    direction = str(raw.get("direction") or DEFAULT_SORT_DIRECTION).lower()
    if column not in SORTABLE_COLUMNS:
        logger.warning("Unknown sort column %r, falling back to %s", column, DEFAULT_SORT_COLUMN)
        column = DEFAULT_SORT_COLUMN
    if direction not in SORT_DIRECTIONS:
        logger.warning("Unknown sort direction %r, falling back to %s", direction, DEFAULT_SORT_DIRECTION)
        direction = DEFAULT_SORT_DIRECTION
    return SortSpec(column=column, direction=direction)


def toggle_sort(current: SortSpec, column: str) -> SortSpec:
    """Clicking the active column flips direction; a new column starts ascending."""
    if column == current.column and current.direction == "asc":
        return SortSpec(column=column, direction="desc")
    return SortSpec(column=column, direction="asc")
