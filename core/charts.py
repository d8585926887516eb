from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.metrics import SummaryStats

alt.data_transformers.disable_max_rows()

SERIES_LABELS = {"availability": "Intro → Removal", "sale_duration": "Sale → Removal"}
SERIES_COLORS = {"availability": "#10b981", "sale_duration": "#6366f1"}


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _average_rules(summary: SummaryStats) -> pd.DataFrame:
    window = summary.recent_window
    return pd.DataFrame(
        [
            {"label": "Average avail", "days": summary.mean_availability, "color": "#10b981", "kind": "overall"},
            {"label": "Average sale", "days": summary.mean_sale_duration, "color": "#6366f1", "kind": "overall"},
            {"label": f"Avg (last {window}) avail", "days": summary.mean_availability_recent, "color": "#0ea5e9", "kind": "recent"},
            {"label": f"Avg (last {window}) sale", "days": summary.mean_sale_duration_recent, "color": "#7c3aed", "kind": "recent"},
        ]
    )


def duration_overview_chart(chart_rows: List[Dict[str, Any]], summary: SummaryStats) -> alt.LayerChart:
    """Grouped bars per capsule (availability and sale duration) with dashed average rules."""
    df = pd.DataFrame(chart_rows, columns=["id", "name", "availability", "sale_duration"])
    order = df["name"].tolist()
    long_df = df.melt(id_vars=["id", "name"], value_vars=list(SERIES_LABELS), var_name="series", value_name="days")
    long_df["series_label"] = long_df["series"].map(SERIES_LABELS)

    bars = (
        alt.Chart(long_df)
        .mark_bar(cornerRadiusTopLeft=6, cornerRadiusTopRight=6)
        .encode(
            x=alt.X("name:N", title=None, sort=order, axis=alt.Axis(labelAngle=-20, labelLimit=200)),
            xOffset=alt.XOffset("series_label:N", sort=list(SERIES_LABELS.values())),
            y=alt.Y("days:Q", title="Days", axis=alt.Axis(gridDash=[3, 3], domain=False, ticks=False)),
            color=alt.Color(
                "series_label:N",
                title=None,
                scale=alt.Scale(domain=list(SERIES_LABELS.values()), range=list(SERIES_COLORS.values())),
                legend=alt.Legend(orient="top"),
            ),
            tooltip=[
                alt.Tooltip("name:N", title="Major"),
                alt.Tooltip("series_label:N", title="Span"),
                alt.Tooltip("days:Q", title="Days", format=",.0f"),
            ],
        )
    )

    rule_base = alt.Chart(_average_rules(summary)).encode(
        y="days:Q",
        color=alt.Color("color:N", scale=None),
        tooltip=[alt.Tooltip("label:N", title="Average"), alt.Tooltip("days:Q", title="Days", format=",.0f")],
    )
    overall_rules = rule_base.transform_filter(alt.datum.kind == "overall").mark_rule(strokeWidth=1.5, strokeDash=[5, 5])
    recent_rules = rule_base.transform_filter(alt.datum.kind == "recent").mark_rule(strokeWidth=1.5, strokeDash=[3, 3])
    return alt.layer(bars, overall_rules, recent_rules).resolve_scale(color="independent").properties(height=360)
