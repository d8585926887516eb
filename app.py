import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from datetime import date
from typing import Optional

from core.charts import duration_overview_chart
from core.data import RECENT_WINDOW, load_dashboard_data, prepare_context
from core.filters import DEFAULT_SORT, SORTABLE_COLUMNS, FilterSpec, toggle_sort
from core.metrics import get_summary_stats
from core.metrics_overview import chart_rows, record_row, records_frame

alt.data_transformers.disable_max_rows()

SORT_LABELS = {
    "name": "Major",
    "year": "Year",
    "introduced_date": "Introduced",
    "sale_start_date": "Sale",
    "removed_date": "Removed",
}

STATUS_TONES = {"Planned": "🔵 Planned", "Active": "🟢 Active", "Removed": "🔴 Removed"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e7e5e4;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.9rem;font-weight: 800;color: #292524;}
        .app-top-bar .subtitle {color: #57534e;font-size: 1.0rem;max-width: 48rem;}
        .card {border: 1px solid #e7e5e4;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #292524;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f5f5f4;border: 1px solid #e7e5e4;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #44403c;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: FilterSpec, sort_label: str, direction: str, as_of: date) -> str:
    chips = [
        f"Year: {filters.year_filter or 'All'}",
        f"Search: {filters.search_text}" if filters.search_text else "Search: —",
        f"Sort: {sort_label} ({direction})",
        f"As of: {as_of.isoformat()}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "capsules.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            "<div class='app-top-bar'><div class='page-title'>🎯 CS Major Capsule Tracking</div>"
            "<div class='subtitle'>Follow the journey of each Major's sticker capsule: when it released, "
            "when the sale began, and when it was finally removed from the in-game store.</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def reset_filters():
    st.session_state["search_text"] = ""
    st.session_state["year_choice"] = "All years"


def on_sort_click(column: str):
    st.session_state["sort"] = toggle_sort(st.session_state["sort"], column)


# ---------- UI setup ----------
st.set_page_config(page_title="CS Major Capsule Tracking", layout="wide")
inject_base_styles()

data_ctx = load_dashboard_data()
records = data_ctx.get("records", ())
if not records:
    st.error("No capsule records configured.")
    st.stop()

if "sort" not in st.session_state:
    st.session_state["sort"] = DEFAULT_SORT

# ----- Sidebar: filters -----
years = data_ctx.get("years", [])
with st.sidebar:
    st.markdown("### Filters")
    search_text = st.text_input("Search a Major or city", key="search_text")
    year_choice = st.selectbox("Year", options=["All years"] + [str(y) for y in years], key="year_choice")
    st.button("Reset", on_click=reset_filters)

    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        as_of = st.date_input("As of", value=date.today(), help="Statuses and running availability are computed relative to this day.")
        recent_window = st.slider("Recent Majors window", min_value=1, max_value=10, value=RECENT_WINDOW)

filters = FilterSpec(search_text=search_text or "", year_filter="" if year_choice == "All years" else year_choice)
sort_spec = st.session_state["sort"]

# One snapshot of "now" for the whole render pass.
ctx = prepare_context(filters, sort_spec, data_ctx, as_of)
filtered = ctx["filtered"]
rows = [record_row(r, as_of) for r in filtered]
table_df = records_frame(rows, display_headers=True)
table_df["Status"] = table_df["Status"].map(STATUS_TONES).fillna(table_df["Status"])

render_page_header(
    format_filter_summary(filters, SORT_LABELS[sort_spec.column], sort_spec.direction, as_of),
    export_df=records_frame(rows, display_headers=True),
    export_name=f"capsules-{as_of.isoformat()}.csv",
)

# ----- Table -----
with card("Capsules"):
    sort_cols = st.columns(len(SORTABLE_COLUMNS))
    for col, column in zip(sort_cols, SORTABLE_COLUMNS):
        arrow = ""
        if column == sort_spec.column:
            arrow = " ▲" if sort_spec.direction == "asc" else " ▼"
        col.button(f"{SORT_LABELS[column]}{arrow}", key=f"sort_{column}", on_click=on_sort_click, args=(column,), use_container_width=True)
    if table_df.empty:
        st.info("No capsules match the current filters.")
    else:
        st.dataframe(table_df, hide_index=True, use_container_width=True)
    st.caption("ⓘ Data is curated from Liquipedia, CSGOSKINS.GG and HLTV. Some dates may be inaccurate.")

# ----- Chart -----
summary = get_summary_stats(filtered, as_of, recent_window=recent_window)
with card("📊 Duration Overview"):
    m = st.columns(4)
    m[0].metric("Average availability", f"{summary.mean_availability:.0f} days")
    m[1].metric("Average sale", f"{summary.mean_sale_duration:.0f} days")
    m[2].metric(f"Avg availability (last {recent_window} Majors)", f"{summary.mean_availability_recent:.0f} days")
    m[3].metric(f"Avg sale (last {recent_window} Majors)", f"{summary.mean_sale_duration_recent:.0f} days")
    bars = chart_rows(filtered, as_of)
    if bars:
        st.altair_chart(duration_overview_chart(bars, summary), use_container_width=True)
    else:
        st.info("Nothing to chart for the current filters.")
