from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from ev_dashboard.charts import make_bar_chart, make_pie_chart, to_vega_spec, year_line_chart
from ev_dashboard.filters import all_filter_options
from ev_dashboard.state import DashboardState


NO_DATA_LABEL = "No Data Found"
TOP_N_MAKES = 10


def count_by_make(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Records per make, most registered first; equal counts ordered by make name."""
    if df.empty or "make" not in df.columns:
        return []
    counts = df.groupby("make", sort=False).size().reset_index(name="value").rename(columns={"make": "name"})
    counts = counts.sort_values(["value", "name"], ascending=[False, True], kind="mergesort")
    return [{"name": str(name), "value": int(value)} for name, value in zip(counts["name"], counts["value"])]


def count_by_year(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty or "model_year" not in df.columns:
        return []
    counts = df.groupby("model_year").size().sort_index()
    return [{"name": str(int(year)), "value": int(n)} for year, n in counts.items()]


def _bucket_label(bucket: Optional[Dict[str, Any]]) -> str:
    if not bucket:
        return NO_DATA_LABEL
    return f"{bucket['name']} ({bucket['value']})"


def busiest_year_bucket(by_year: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not by_year:
        return None
    # by_year is ascending, so max() keeps the earliest year on ties
    return max(by_year, key=lambda b: b["value"])


def summarize(filtered: pd.DataFrame, by_make: List[Dict[str, Any]], by_year: List[Dict[str, Any]]) -> Dict[str, Any]:
    top_make = by_make[0] if by_make else None
    # headline year is the first bucket of the ascending year series
    top_year = by_year[0] if by_year else None
    return {
        "total_records": int(len(filtered)),
        "top_make": top_make,
        "top_year": top_year,
        "busiest_year": busiest_year_bucket(by_year),
        "top_make_label": _bucket_label(top_make),
        "top_year_label": _bucket_label(top_year),
    }


def build_charts(by_make: List[Dict[str, Any]], by_year: List[Dict[str, Any]]) -> Dict[str, Any]:
    charts: Dict[str, Any] = {}
    if by_make:
        top = by_make[:TOP_N_MAKES]
        charts["by_make"] = to_vega_spec(make_bar_chart(top))
        charts["top_makes_pie"] = to_vega_spec(make_pie_chart(top))
    if by_year:
        charts["by_year"] = to_vega_spec(year_line_chart(by_year))
    return charts


def compute_overview(state: DashboardState, ctx: Dict[str, Any], *, include_charts: bool = True) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())

    by_make = count_by_make(filtered)
    by_year = count_by_year(filtered)

    return {
        "state": state.to_dict(),
        "loaded": bool(ctx.get("loaded", False)),
        "summary": summarize(filtered, by_make, by_year),
        "by_make": by_make,
        "by_year": by_year,
        "options": all_filter_options(records, state.filters),
        "charts": build_charts(by_make, by_year) if include_charts else {},
    }
