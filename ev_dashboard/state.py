"""Explicit dashboard state and its transitions.

Callers keep a ``DashboardState``, apply one of the transitions below after a
user action and re-run the pipeline (``compute_dashboard``) with the result.
States are immutable; every transition returns a new one.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional

from ev_dashboard.filters import FilterState, normalize_filters, with_filter
from ev_dashboard.pagination import clamp_page


@dataclass(frozen=True)
class DashboardState:
    filters: FilterState = field(default_factory=FilterState)
    page: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_state(raw: Optional[dict]) -> DashboardState:
    raw = raw or {}
    page = raw.get("page", 1)
    try:
        page = int(page)
    except Exception:
        page = 1
    return DashboardState(filters=normalize_filters(raw.get("filters")), page=max(1, page))


def select_filter(state: DashboardState, key: str, value: object) -> DashboardState:
    return DashboardState(filters=with_filter(state.filters, key, value), page=1)


def reset_filters(state: DashboardState) -> DashboardState:
    return DashboardState()


def next_page(state: DashboardState, total_pages: int) -> DashboardState:
    if state.page >= total_pages:
        return state
    return replace(state, page=state.page + 1)


def prev_page(state: DashboardState) -> DashboardState:
    if state.page <= 1:
        return state
    return replace(state, page=state.page - 1)


def go_to_page(state: DashboardState, page: object, total_pages: int) -> DashboardState:
    return replace(state, page=clamp_page(page, total_pages))
