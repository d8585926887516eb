from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from core.charts import duration_overview_chart, to_vega_spec
from core.data import RECENT_WINDOW, CapsuleRecord
from core.dates import MISSING_DISPLAY, format_date
from core.filters import FilterSpec, SortSpec
from core.metrics import get_derived_metrics, get_summary_stats


UNKNOWN_LOCATION_DISPLAY = "Unknown"

TABLE_COLUMNS = [
    "name",
    "location_display",
    "year",
    "introduced_display",
    "sale_start_display",
    "removed_display",
    "availability_display",
    "sale_duration_display",
    "winner",
    "status_label",
]

TABLE_HEADERS = {
    "name": "Major",
    "location_display": "City",
    "year": "Year",
    "introduced_display": "Introduced",
    "sale_start_display": "Sale",
    "removed_display": "Removed",
    "availability_display": "Availability (intro → removal)",
    "sale_duration_display": "Sale Duration (sale → removal)",
    "winner": "Champion",
    "status_label": "Status",
}


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _days_display(days: Optional[int], ongoing: bool = False) -> str:
    if days is None:
        return MISSING_DISPLAY
    return f"{days} days{' (so far)' if ongoing else ''}"


def record_row(record: CapsuleRecord, now: date) -> Dict[str, Any]:
    derived = get_derived_metrics(record, now)
    return {
        "id": record.id,
        "name": record.name,
        "location": record.location,
        "location_display": record.location if record.has_known_location else UNKNOWN_LOCATION_DISPLAY,
        "year": record.year,
        "introduced_date": _iso(record.introduced_date),
        "sale_start_date": _iso(record.sale_start_date),
        "removed_date": _iso(record.removed_date),
        "introduced_display": format_date(record.introduced_date),
        "sale_start_display": format_date(record.sale_start_date),
        "removed_display": format_date(record.removed_date),
        "winner": record.winner,
        "logo_ref": record.logo_ref,
        **derived.to_dict(),
        "availability_display": _days_display(derived.availability_days, derived.availability_ongoing),
        "sale_duration_display": _days_display(derived.sale_duration_days),
    }


def chart_rows(records: Sequence[CapsuleRecord], now: date) -> List[Dict[str, Any]]:
    """Bar chart input in introduction order (undated capsules first), missing spans plotted as 0."""
    ordered = sorted(records, key=lambda r: (r.introduced_date is not None, r.introduced_date or date.min))
    out: List[Dict[str, Any]] = []
    for r in ordered:
        derived = get_derived_metrics(r, now)
        out.append(
            {
                "id": r.id,
                "name": r.name,
                "availability": derived.availability_days or 0,
                "sale_duration": derived.sale_duration_days or 0,
            }
        )
    return out


def records_frame(rows: List[Dict[str, Any]], *, display_headers: bool = False) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=TABLE_COLUMNS)
    df["winner"] = df["winner"].fillna(MISSING_DISPLAY)
    if display_headers:
        df = df.rename(columns=TABLE_HEADERS)
    return df


def compute_overview(filters: FilterSpec, ctx: Dict[str, Any], *, recent_window: int = RECENT_WINDOW) -> Dict[str, Any]:
    now: date = ctx["now"]
    sort: SortSpec = ctx.get("sort") or SortSpec()
    filtered: List[CapsuleRecord] = ctx.get("filtered", [])

    summary = get_summary_stats(filtered, now, recent_window=recent_window)
    bars = chart_rows(filtered, now)
    charts: Dict[str, Any] = {}
    if bars:
        charts["duration_overview"] = to_vega_spec(duration_overview_chart(bars, summary))

    return {
        "filters": asdict(filters),
        "sort": asdict(sort),
        "as_of": now.isoformat(),
        "years": list(ctx.get("years", [])),
        "rows": [record_row(r, now) for r in filtered],
        "summary": summary.as_dict(),
        "chart_rows": bars,
        "charts": charts,
    }
