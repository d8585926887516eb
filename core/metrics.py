from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from core.dates import availability_span, sale_duration
from core.status import CapsuleStatus, classify_status

if TYPE_CHECKING:
    from core.data import CapsuleRecord


DurationFn = Callable[["CapsuleRecord"], Optional[int]]


@dataclass(frozen=True)
class DerivedMetrics:
    availability_days: Optional[int]
    sale_duration_days: Optional[int]
    status: CapsuleStatus
    availability_ongoing: bool = False

    @property
    def status_label(self) -> str:
        return self.status.label

    @property
    def status_rank(self) -> int:
        return self.status.rank

    def to_dict(self) -> Dict[str, Any]:
        return {
            "availability_days": self.availability_days,
            "sale_duration_days": self.sale_duration_days,
            "availability_ongoing": self.availability_ongoing,
            "status_label": self.status_label,
            "status_rank": self.status_rank,
        }


@dataclass(frozen=True)
class SummaryStats:
    mean_availability: float = 0.0
    mean_sale_duration: float = 0.0
    mean_availability_recent: float = 0.0
    mean_sale_duration_recent: float = 0.0
    recent_window: int = 5
    record_count: int = 0

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out[f"mean_availability_recent{self.recent_window}"] = self.mean_availability_recent
        out[f"mean_sale_duration_recent{self.recent_window}"] = self.mean_sale_duration_recent
        return out


def mean_duration(records: Iterable["CapsuleRecord"], duration_fn: DurationFn) -> float:
    """Mean of the defined durations; 0.0 when no record yields one."""
    values = pd.Series([duration_fn(r) for r in records], dtype="float64").dropna()
    if values.empty:
        return 0.0
    return float(values.mean())


def recent_subset(records: Iterable["CapsuleRecord"], n: int) -> List["CapsuleRecord"]:
    """The ``n`` most recently introduced records, newest first. Undated records are skipped."""
    if n <= 0:
        return []
    dated = [r for r in records if r.introduced_date is not None]
    return sorted(dated, key=lambda r: r.introduced_date, reverse=True)[:n]


def get_derived_metrics(record: "CapsuleRecord", now: date) -> DerivedMetrics:
    availability = availability_span(record, now)
    return DerivedMetrics(
        availability_days=availability,
        sale_duration_days=sale_duration(record),
        status=classify_status(record, now),
        availability_ongoing=availability is not None and record.removed_date is None,
    )


def get_summary_stats(records: Sequence["CapsuleRecord"], now: date, *, recent_window: int = 5) -> SummaryStats:
    def availability(r: "CapsuleRecord") -> Optional[int]:
        return availability_span(r, now)

    recent = recent_subset(records, recent_window)
    return SummaryStats(
        mean_availability=mean_duration(records, availability),
        mean_sale_duration=mean_duration(records, sale_duration),
        mean_availability_recent=mean_duration(recent, availability),
        mean_sale_duration_recent=mean_duration(recent, sale_duration),
        recent_window=recent_window,
        record_count=len(records),
    )
