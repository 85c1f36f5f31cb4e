"""Altair chart builders for the bucket lists ({"name", "value"} rows)."""

from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

CHART_HEIGHT = 350

PIE_COLORS = [
    "#FF6B6B", "#FFD93D", "#6BCB77", "#4D96FF", "#FF6F91",
    "#845EC2", "#FFC75F", "#F9F871", "#00C9A7", "#0081CF",
]

_TOOLTIP_VALUE = alt.Tooltip("value:Q", title="Vehicles", format=",")


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Vega-Lite spec dict for ``chart`` (JSON-serializable)."""
    return chart.to_dict()


def make_bar_chart(buckets: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(buckets, columns=["name", "value"])
    return (
        alt.Chart(df)
        .mark_bar(color="#6366F1")
        .encode(
            x=alt.X("name:N", title="Make", sort=None),
            y=alt.Y("value:Q", title="Vehicles", axis=alt.Axis(format="~s", gridDash=[3, 3])),
            tooltip=[alt.Tooltip("name:N", title="Make"), _TOOLTIP_VALUE],
        )
        .properties(height=CHART_HEIGHT)
    )


def year_line_chart(buckets: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(buckets, columns=["name", "value"])
    return (
        alt.Chart(df)
        .mark_line(point=True, color="#4ADE80", strokeWidth=2)
        .encode(
            x=alt.X("name:O", title="Model Year", sort=None),
            y=alt.Y("value:Q", title="Vehicles", axis=alt.Axis(format="~s", gridDash=[3, 3])),
            tooltip=[alt.Tooltip("name:O", title="Year"), _TOOLTIP_VALUE],
        )
        .properties(height=CHART_HEIGHT)
    )


def make_pie_chart(buckets: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(buckets, columns=["name", "value"])
    palette = [PIE_COLORS[i % len(PIE_COLORS)] for i in range(len(df))]
    return (
        alt.Chart(df)
        .mark_arc(outerRadius=100)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color(
                "name:N",
                title="Make",
                sort=None,
                scale=alt.Scale(domain=df["name"].tolist(), range=palette),
                legend=alt.Legend(orient="bottom"),
            ),
            tooltip=[alt.Tooltip("name:N", title="Make"), _TOOLTIP_VALUE],
        )
        .properties(height=CHART_HEIGHT)
    )
