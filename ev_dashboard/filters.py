from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd


FILTER_KEYS = ("city", "county", "company", "model", "year")

# filter key -> normalized record column
FILTER_COLUMNS = {
    "city": "city",
    "county": "county",
    "company": "make",
    "model": "model",
    "year": "model_year",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_INT64 = np.iinfo(np.int64)


@dataclass(frozen=True)
class FilterState:
    city: str = ""
    county: str = ""
    company: str = ""
    model: str = ""
    year: str = ""

    def active(self) -> Dict[str, str]:
        return {k: getattr(self, k) for k in FILTER_KEYS if getattr(self, k)}


def _as_str(value: object) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def parse_leading_int(value: object) -> Optional[int]:
    """Parse the integer prefix of ``value`` ("2021", " 215 mi", "12.5" -> 12).

    Values that do not fit in an int64 column are treated as unparseable.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    out = int(match.group(1))
    if not _INT64.min <= out <= _INT64.max:
        return None
    return out


def normalize_filters(raw: Optional[dict]) -> FilterState:
    raw = raw or {}
    return FilterState(**{k: _as_str(raw.get(k)) for k in FILTER_KEYS})


def with_filter(filters: FilterState, key: str, value: object) -> FilterState:
    if key not in FILTER_KEYS:
        raise KeyError(f"Unknown filter key: {key}")
    changes: Dict[str, Any] = {key: _as_str(value)}
    # model choices depend on the company, so a new company invalidates them
    if key == "company":
        changes["model"] = ""
    return replace(filters, **changes)


def _mask_for(df: pd.DataFrame, key: str, value: str) -> pd.Series:
    col = FILTER_COLUMNS[key]
    if col not in df.columns:
        return pd.Series(False, index=df.index)
    if key == "year":
        year = parse_leading_int(value)
        if year is None:
            return pd.Series(False, index=df.index)
        return df[col] == year
    return df[col] == value


def apply_filters(df: pd.DataFrame, filters: FilterState, *, exclude: tuple = ()) -> pd.DataFrame:
    """Return the rows of ``df`` matching every active filter (logical AND).

    Keys listed in ``exclude`` are ignored. Row order is preserved and an
    inactive filter state returns ``df`` itself.
    """
    active = {k: v for k, v in filters.active().items() if k not in exclude}
    if df.empty or not active:
        return df
    mask = pd.Series(True, index=df.index)
    for key, value in active.items():
        mask &= _mask_for(df, key, value)
    return df[mask]


def _distinct_sorted(series: pd.Series, *, numeric: bool = False) -> List[Any]:
    if numeric:
        values = pd.to_numeric(series, errors="coerce").dropna().astype(int).unique().tolist()
        return sorted(int(v) for v in values)
    values = series.dropna().astype(str)
    values = values[values != ""]
    return sorted(values.unique().tolist())


def filter_options(df: pd.DataFrame, filters: FilterState, key: str) -> List[Any]:
    """Distinct values offered for ``key`` given the other active filters.

    The model list is narrowed by the selected company alone, so choosing a
    company always exposes all of its models regardless of city, county or year.
    """
    if key not in FILTER_KEYS:
        raise KeyError(f"Unknown filter key: {key}")
    col = FILTER_COLUMNS[key]
    if df.empty or col not in df.columns:
        return []
    if key == "model" and filters.company:
        scope = df[df["make"] == filters.company]
    else:
        scope = apply_filters(df, filters, exclude=(key,))
    return _distinct_sorted(scope[col], numeric=(key == "year"))


def all_filter_options(df: pd.DataFrame, filters: FilterState) -> Dict[str, List[Any]]:
    return {key: filter_options(df, filters, key) for key in FILTER_KEYS}
