"""Tests for the page payload, table frame and chart spec."""

from __future__ import annotations

from datetime import date

from core.charts import duration_overview_chart, to_vega_spec
from core.data import load_dashboard_data, prepare_context
from core.filters import FilterSpec, SortSpec
from core.metrics import get_summary_stats
from core.metrics_overview import TABLE_HEADERS, chart_rows, compute_overview, record_row, records_frame

TODAY = date(2026, 10, 19)


def _overview(filters: FilterSpec, sort: SortSpec = SortSpec()) -> dict:
    ctx = prepare_context(filters, sort, load_dashboard_data(), TODAY)
    return compute_overview(filters, ctx)


class TestRecordRow:
    def test_removed_row(self, by_id) -> None:
        row = record_row(by_id["paris-2023"], TODAY)
        assert row["introduced_date"] == "2023-05-04"
        assert row["introduced_display"] == "May 04, 2023"
        assert row["availability_display"] == "156 days"
        assert row["sale_duration_display"] == "106 days"
        assert row["status_label"] == "Removed"

    def test_ongoing_row(self, by_id) -> None:
        row = record_row(by_id["austin-2025"], date(2025, 9, 1))
        assert row["availability_display"] == "102 days (so far)"
        assert row["sale_duration_display"] == "—"
        assert row["removed_display"] == "—"

    def test_planned_row(self, by_id) -> None:
        row = record_row(by_id["cologne-2026"], TODAY)
        assert row["availability_days"] is None
        assert row["status_label"] == "Planned"


    def test_unknown_location_shown_as_unknown(self, by_id) -> None:
        row = record_row(by_id["RMR-2020"], TODAY)
        assert row["location"] == "N/A"
        assert row["location_display"] == "Unknown"
        assert record_row(by_id["paris-2023"], TODAY)["location_display"] == "Paris"


class TestChartRows:
    def test_introduction_order_with_undated_first(self, capsules) -> None:
        rows = chart_rows(capsules, TODAY)
        assert [r["id"] for r in rows[:3]] == ["budapest-2025", "cologne-2026", "katowice-2014"]
        assert rows[-1]["id"] == "austin-2025"

    def test_missing_spans_plot_as_zero(self, by_id) -> None:
        rows = chart_rows([by_id["budapest-2025"], by_id["austin-2025"]], date(2025, 9, 1))
        assert rows[0] == {"id": "budapest-2025", "name": "StarLadder Budapest 2025", "availability": 0, "sale_duration": 0}
        assert rows[1]["availability"] == 102
        assert rows[1]["sale_duration"] == 0


class TestChart:
    def test_spec_has_bars_and_rules(self, capsules) -> None:
        summary = get_summary_stats(capsules, TODAY)
        spec = to_vega_spec(duration_overview_chart(chart_rows(capsules, TODAY), summary))
        assert len(spec["layer"]) == 3
        assert spec["layer"][0]["mark"]["type"] == "bar"
        assert spec["layer"][1]["mark"]["type"] == "rule"


class TestRecordsFrame:
    def test_display_headers(self, capsules) -> None:
        rows = [record_row(r, TODAY) for r in capsules]
        df = records_frame(rows, display_headers=True)
        assert list(df.columns) == list(TABLE_HEADERS.values())
        assert len(df) == 24
        assert (df["Champion"] == "—").sum() == 3
        assert df.loc[df["Major"] == "Regional Major Rankings 2020", "City"].tolist() == ["Unknown"]

    def test_empty(self) -> None:
        assert records_frame([]).empty


class TestComputeOverview:
    def test_payload(self) -> None:
        payload = _overview(FilterSpec(year_filter="2019"))
        assert payload["as_of"] == "2026-10-19"
        assert payload["filters"] == {"search_text": "", "year_filter": "2019"}
        assert payload["sort"] == {"column": "introduced_date", "direction": "desc"}
        assert [r["id"] for r in payload["rows"]] == ["berlin-2019", "katowice-2019"]
        assert payload["summary"]["record_count"] == 2
        assert "duration_overview" in payload["charts"]

    def test_no_matches(self) -> None:
        payload = _overview(FilterSpec(search_text="no such major"))
        assert payload["rows"] == []
        assert payload["charts"] == {}
        assert payload["summary"]["mean_availability"] == 0.0
