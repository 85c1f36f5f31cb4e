from __future__ import annotations

from typing import Any, Dict, Union

from ev_dashboard.data import prepare_context
from ev_dashboard.metrics_overview import compute_overview
from ev_dashboard.metrics_records import compute_records
from ev_dashboard.state import DashboardState


def compute_dashboard(
    state: Union[dict, DashboardState, None],
    data_ctx: Dict[str, Any],
    *,
    include_charts: bool = True,
) -> Dict[str, Any]:
    """Full view model for ``state``: summary, buckets, charts, options and the current page.

    Re-run after every state transition; nothing is carried over between calls.
    """
    ctx = prepare_context(state, data_ctx)
    dash_state: DashboardState = ctx["state"]
    payload = compute_overview(dash_state, ctx, include_charts=include_charts)
    payload["records"] = compute_records(dash_state, ctx)
    # the page may have been clamped against the filtered set
    payload["state"]["page"] = payload["records"]["page"]
    return payload
