from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from ev_dashboard.data import missing_columns
from ev_dashboard.state import DashboardState


def compute_debug(state: DashboardState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    dq: Dict[str, int] = ctx.get("dq", {}) or {}
    columns = ctx.get("columns", []) or []

    payload: Dict[str, Any] = {
        "state": state.to_dict(),
        "source": {
            "path": ctx.get("source"),
            "loaded": bool(ctx.get("loaded", False)),
            "error": ctx.get("error"),
        },
        "row_counts": {
            "raw_rows": int(dq.get("raw_rows", 0)),
            "records": int(len(records)),
            "filtered_records": int(len(filtered)),
        },
        "cleaning_checks": {
            "dropped_missing_make_or_year": int(dq.get("dropped_missing_make_or_year", 0)),
            "dropped_unparseable_year": int(dq.get("dropped_unparseable_year", 0)),
            "range_defaulted": int(dq.get("range_defaulted", 0)),
        },
        "columns": list(columns),
        "missing_columns": missing_columns(columns) if columns else {"required": [], "passthrough": []},
        "year_coverage": {},
        "blank_counts": {},
    }

    if not records.empty:
        payload["year_coverage"] = {
            "min": int(records["model_year"].min()),
            "max": int(records["model_year"].max()),
            "years_present": int(records["model_year"].nunique()),
        }
        payload["blank_counts"] = {
            col: int((records[col] == "").sum()) for col in ["model", "city", "county"] if col in records.columns
        }
    return payload
