from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ev_dashboard.data import PASSTHROUGH_COLUMNS, RECORD_COLUMNS
from ev_dashboard.pagination import paginate
from ev_dashboard.state import DashboardState


TABLE_COLUMNS = ["record_id", "make", "model", "model_year", "range"]

MISSING_LABEL = "N/A"

# (label, column, is_passthrough)
DETAIL_FIELDS: List[Tuple[str, str, bool]] = [
    ("Vehicle ID", "DOL Vehicle ID", True),
    ("Company", "make", False),
    ("Model", "model", False),
    ("Year", "model_year", False),
    ("Range", "range", False),
    ("Vehicle Type", "Vehicle Type", True),
    ("City", "city", False),
    ("County", "county", False),
    ("Postal Code", "Postal Code", True),
    ("VIN", "VIN", True),
    ("CAFV Eligibility", "Clean Alternative Fuel Vehicle (CAFV) Eligibility", True),
    ("Legislative District", "Legislative District", True),
    ("2020 Census Tract", "2020 Census Tract", True),
    ("Electric Utility", "Electric Utility", True),
    ("Base MSRP", "Base MSRP", True),
    ("Incentive Amount", "Incentive Amount", True),
]


def _plain(value: Any) -> Any:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if hasattr(value, "item"):
        return value.item()
    return value


def compute_records(state: DashboardState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame(columns=RECORD_COLUMNS))
    page = paginate(filtered, state.page)

    table = page.rows[[c for c in TABLE_COLUMNS if c in page.rows.columns]].reset_index(drop=True)
    table.insert(0, "row_number", table.index + page.start_index + 1)
    rows = [{k: _plain(v) for k, v in row.items()} for row in table.to_dict(orient="records")]

    return {
        "page": page.page,
        "page_size": page.page_size,
        "total_pages": page.total_pages,
        "total_records": page.total_records,
        "start_index": page.start_index,
        "has_prev": page.has_prev,
        "has_next": page.has_next,
        "rows": rows,
    }


def compute_record_detail(ctx: Dict[str, Any], record_id: int) -> Optional[Dict[str, Any]]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame(columns=RECORD_COLUMNS))
    if records.empty or "record_id" not in records.columns:
        return None
    match = records[records["record_id"] == record_id]
    if match.empty:
        return None
    row = match.iloc[0]

    fields = []
    for label, col, passthrough in DETAIL_FIELDS:
        value = _plain(row.get(col))
        if passthrough and (value is None or str(value).strip() == ""):
            value = MISSING_LABEL
        fields.append({"label": label, "column": col, "value": value})

    return {
        "record_id": int(row["record_id"]),
        "fields": fields,
        "raw": {str(k): _plain(v) for k, v in row.items() if k not in RECORD_COLUMNS},
    }


def export_frame(ctx: Dict[str, Any]) -> pd.DataFrame:
    """Filtered records for download: canonical columns, then known passthrough, then the rest."""
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if filtered.empty and not len(filtered.columns):
        return pd.DataFrame(columns=RECORD_COLUMNS)
    known = [c for c in RECORD_COLUMNS + PASSTHROUGH_COLUMNS if c in filtered.columns]
    rest = [c for c in filtered.columns if c not in known]
    return filtered[known + rest]
