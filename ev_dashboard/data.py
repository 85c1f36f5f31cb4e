from __future__ import annotations

import logging
import os
from functools import lru_cache
from io import StringIO
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from ev_dashboard.filters import apply_filters, parse_leading_int
from ev_dashboard.state import DashboardState, normalize_state


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
CSV_FILENAME = "ev_data.csv"
CSV_PATH_ENV = "EV_DASHBOARD_CSV"

YEAR_COL = "Model Year"
MAKE_COL = "Make"
MODEL_COL = "Model"
RANGE_COL = "Electric Range"
CITY_COL = "City"
COUNTY_COL = "County"

REQUIRED_COLUMNS = [YEAR_COL, MAKE_COL, MODEL_COL, RANGE_COL, CITY_COL, COUNTY_COL]

PASSTHROUGH_COLUMNS = [
    "DOL Vehicle ID",
    "Vehicle Type",
    "Postal Code",
    "VIN",
    "Clean Alternative Fuel Vehicle (CAFV) Eligibility",
    "Legislative District",
    "2020 Census Tract",
    "Electric Utility",
    "Base MSRP",
    "Incentive Amount",
]

RECORD_COLUMNS = ["record_id", "make", "model", "model_year", "range", "city", "county"]

CsvSource = Union[str, Path, StringIO]


def get_source_file() -> Path:
    override = os.environ.get(CSV_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return DATA_DIR / CSV_FILENAME


def file_signature(path: Path) -> Tuple[str, float]:
    return str(path.resolve()), path.stat().st_mtime


def read_ev_csv(source: CsvSource) -> pd.DataFrame:
    """Read the registrations CSV as text: header row first, blank lines skipped.

    Rows with more cells than the header keep their leading cells and the
    surplus is dropped.
    """
    df = pd.read_csv(
        source,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        encoding="utf-8-sig",
        engine="python",
        index_col=False,
        usecols=lambda _: True,
    )
    # short rows leave NaN in trailing cells even with keep_default_na=False
    return df.fillna("")


def parse_csv_text(text: str) -> pd.DataFrame:
    return read_ev_csv(StringIO(text))


def _text_column(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series("", index=df.index, dtype=object)
    return df[col].astype(str)


def _int_column(text: pd.Series) -> pd.Series:
    return pd.Series(pd.array([parse_leading_int(v) for v in text], dtype="Int64"), index=text.index)


def clean_records(raw: pd.DataFrame) -> Tuple[pd.DataFrame, Dict[str, int]]:
    raw = raw.reset_index(drop=True)
    year_text = _text_column(raw, YEAR_COL).str.strip()
    make = _text_column(raw, MAKE_COL).str.strip()

    missing = (year_text == "") | (make == "")
    years = _int_column(year_text)
    bad_year = ~missing & years.isna()
    keep = ~missing & ~bad_year

    records = raw.loc[keep].copy()
    records["make"] = make[keep]
    records["model"] = _text_column(raw, MODEL_COL)[keep].str.strip()
    records["model_year"] = years[keep].astype("int64")
    ranges = _int_column(_text_column(raw, RANGE_COL)[keep])
    records["range"] = ranges.fillna(0).astype("int64").clip(lower=0)
    records["city"] = _text_column(raw, CITY_COL)[keep].str.strip()
    records["county"] = _text_column(raw, COUNTY_COL)[keep].str.strip()

    records = records.reset_index(drop=True)
    records["record_id"] = records.index.astype("int64")
    passthrough = [c for c in records.columns if c not in RECORD_COLUMNS]
    records = records[RECORD_COLUMNS + passthrough]

    dq = {
        "raw_rows": int(len(raw)),
        "records": int(len(records)),
        "dropped_missing_make_or_year": int(missing.sum()),
        "dropped_unparseable_year": int(bad_year.sum()),
        "range_defaulted": int(ranges.isna().sum()),
    }
    if dq["raw_rows"] != dq["records"]:
        logger.info(
            "Dropped %d of %d rows during normalization",
            dq["raw_rows"] - dq["records"],
            dq["raw_rows"],
        )
    return records, dq


def normalize_records(raw: pd.DataFrame) -> pd.DataFrame:
    records, _ = clean_records(raw)
    return records


def missing_columns(columns: Iterable[str]) -> Dict[str, List[str]]:
    present = set(columns)
    return {
        "required": [c for c in REQUIRED_COLUMNS if c not in present],
        "passthrough": [c for c in PASSTHROUGH_COLUMNS if c not in present],
    }


def _empty_context(source: Optional[str], error: Optional[str] = None) -> Dict[str, object]:
    return {
        "loaded": False,
        "source": source,
        "error": error,
        "columns": [],
        "records": pd.DataFrame(columns=RECORD_COLUMNS),
        "dq": {},
    }


def build_data_context(raw: pd.DataFrame, source: Optional[str] = None) -> Dict[str, object]:
    records, dq = clean_records(raw)
    return {
        "loaded": True,
        "source": source,
        "error": None,
        "columns": [str(c) for c in raw.columns],
        "records": records,
        "dq": dq,
    }


# ---------------- Public API (Streamlit + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(path: str, mtime: float) -> Dict[str, object]:
    try:
        raw = read_ev_csv(path)
        logger.info("Loaded %d rows from %s", len(raw), path)
        return build_data_context(raw, source=path)
    except Exception as exc:
        logger.exception("Failed to load EV data from %s", path)
        return _empty_context(path, error=f"{type(exc).__name__}: {exc}")


def load_dashboard_data(path: Optional[Union[str, Path]] = None) -> Dict[str, object]:
    source = Path(path) if path is not None else get_source_file()
    if not source.is_file():
        logger.error("EV data file not found: %s", source)
        return _empty_context(str(source), error="file not found")
    return _load_dashboard_data_cached(*file_signature(source))


def prepare_context(state: Union[dict, DashboardState, None], data_ctx: Dict[str, object]) -> Dict[str, object]:
    dash_state = state if isinstance(state, DashboardState) else normalize_state(state)
    records: pd.DataFrame = data_ctx.get("records", pd.DataFrame(columns=RECORD_COLUMNS))
    filtered = apply_filters(records, dash_state.filters)
    return {
        "state": dash_state,
        "loaded": bool(data_ctx.get("loaded", False)),
        "records": records,
        "filtered": filtered,
        "columns": data_ctx.get("columns", []),
        "dq": data_ctx.get("dq", {}),
        "source": data_ctx.get("source"),
        "error": data_ctx.get("error"),
    }
