import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from ev_dashboard.charts import make_bar_chart, make_pie_chart, year_line_chart
from ev_dashboard.dashboard import compute_dashboard
from ev_dashboard.data import load_dashboard_data, prepare_context
from ev_dashboard.metrics_overview import TOP_N_MAKES
from ev_dashboard.metrics_records import compute_record_detail, export_frame
from ev_dashboard.state import DashboardState, next_page, prev_page, reset_filters, select_filter

alt.data_transformers.disable_max_rows()

FILTER_LABELS = {
    "county": "County",
    "city": "City",
    "company": "Company",
    "model": "Model",
    "year": "Year",
}
ALL_OPTION = ""


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #bbf7d0;border-radius: 16px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.05rem;color: #15803d;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f0fdf4;border: 1px solid #bbf7d0;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #166534;}
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


def format_filter_summary(filters: Dict[str, str]) -> str:
    chips = [f"{FILTER_LABELS[k]}: {v or 'All'}" for k, v in filters.items()]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def get_state() -> DashboardState:
    if "dashboard_state" not in st.session_state:
        st.session_state["dashboard_state"] = DashboardState()
    return st.session_state["dashboard_state"]


def set_state(state: DashboardState):
    st.session_state["dashboard_state"] = state


# ---------- callbacks ----------
def on_filter_change(key: str):
    set_state(select_filter(get_state(), key, st.session_state[f"filter_{key}"]))
    if key == "company":
        st.session_state["filter_model"] = ALL_OPTION


def on_reset():
    set_state(reset_filters(get_state()))
    for key in FILTER_LABELS:
        st.session_state[f"filter_{key}"] = ALL_OPTION


def on_prev():
    set_state(prev_page(get_state()))


def on_next(total_pages: int):
    set_state(next_page(get_state(), total_pages))


# ---------- UI setup ----------
st.set_page_config(page_title="EV Dashboard", layout="wide")
inject_base_styles()
st.title("EV Dashboard")

data_ctx = load_dashboard_data()
if not data_ctx.get("loaded"):
    st.info("Loading... no EV registration data is available yet.")
    if data_ctx.get("error"):
        st.caption(f"Source: {data_ctx.get('source')}")
    st.stop()

state = get_state()
payload = compute_dashboard(state, data_ctx)
summary = payload["summary"]
options = payload["options"]
page = payload["records"]


def render_filters():
    with card("Search Filters"):
        cols = st.columns(len(FILTER_LABELS) + 1)
        for col, (key, label) in zip(cols, FILTER_LABELS.items()):
            choices: List[object] = [ALL_OPTION] + [str(v) for v in options.get(key, [])]
            current = getattr(state.filters, key)
            if current and current not in choices:
                choices.append(current)
            st.session_state.setdefault(f"filter_{key}", current)
            col.selectbox(
                label,
                options=choices,
                key=f"filter_{key}",
                format_func=lambda v, lbl=label: v or f"All ({lbl})",
                on_change=on_filter_change,
                args=(key,),
            )
        cols[-1].button("Reset Filters", on_click=on_reset)
        st.markdown(f"<div class='chip-row'>{format_filter_summary(payload['state']['filters'])}</div>", unsafe_allow_html=True)


def render_kpi_tiles():
    cols = st.columns(3)
    cols[0].metric("Total EVs", f"{summary['total_records']:,}")
    cols[1].metric("Top Make", summary["top_make_label"])
    cols[2].metric("Top Model Year", summary["top_year_label"])


def render_charts():
    by_make = payload["by_make"]
    by_year = payload["by_year"]
    cols = st.columns(3)
    with cols[0]:
        with card("EVs by Make"):
            if by_make:
                st.altair_chart(make_bar_chart(by_make[:TOP_N_MAKES]), use_container_width=True)
            else:
                st.info("No Data Found")
    with cols[1]:
        with card("EVs by Model Year"):
            if by_year:
                st.altair_chart(year_line_chart(by_year), use_container_width=True)
            else:
                st.info("No Data Found")
    with cols[2]:
        with card(f"Top {TOP_N_MAKES} Makes - Pie Chart"):
            if by_make:
                st.altair_chart(make_pie_chart(by_make[:TOP_N_MAKES]), use_container_width=True)
            else:
                st.info("No Data Found")


def render_detail(record_id: Optional[int]):
    if record_id is None:
        return
    ctx = prepare_context(state, data_ctx)
    detail = compute_record_detail(ctx, record_id)
    if detail is None:
        return
    with card("Vehicle Details"):
        cols = st.columns(2)
        for i, field in enumerate(detail["fields"]):
            cols[i % 2].markdown(f"**{field['label']}:** {field['value']}")


def render_table():
    with card("EV Records"):
        rows = pd.DataFrame(page["rows"])
        if rows.empty:
            st.info("No records match the selected filters.")
            selected = None
        else:
            display_df = rows.rename(
                columns={
                    "row_number": "SL No.",
                    "make": "Company",
                    "model": "Model",
                    "model_year": "Year",
                    "range": "Range",
                }
            )
            st.caption("Select a row to view the vehicle details")
            event = st.dataframe(
                display_df.drop(columns=["record_id"]),
                hide_index=True,
                use_container_width=True,
                on_select="rerun",
                selection_mode="single-row",
            )
            picked = event.selection.rows if event is not None else []
            selected = int(rows.iloc[picked[0]]["record_id"]) if picked else None

        nav = st.columns([6, 1, 1, 1])
        nav[1].button("Prev", on_click=on_prev, disabled=not page["has_prev"])
        nav[2].markdown(f"Page {page['page']} / {page['total_pages']}")
        nav[3].button("Next", on_click=on_next, args=(page["total_pages"],), disabled=not page["has_next"])

        ctx = prepare_context(state, data_ctx)
        export_df = export_frame(ctx)
        if not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name="ev_records.csv",
                mime="text/csv",
            )
    render_detail(selected)


render_filters()
render_kpi_tiles()
render_charts()
render_table()
