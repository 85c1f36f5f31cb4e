from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardStateModel, OptionsResponse, StatusResponse
from ev_dashboard.dashboard import compute_dashboard
from ev_dashboard.data import load_dashboard_data, prepare_context
from ev_dashboard.filters import all_filter_options
from ev_dashboard.metrics_debug import compute_debug
from ev_dashboard.metrics_records import compute_record_detail, compute_records, export_frame
from ev_dashboard.state import DashboardState, normalize_state


app = FastAPI(title="EV Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _state_from_model(model: DashboardStateModel) -> DashboardState:
    return normalize_state(model.model_dump(exclude={"include_charts"}))


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


@app.get("/meta/status", response_model=StatusResponse)
def meta_status():
    try:
        data_ctx = load_dashboard_data()
        records = data_ctx.get("records", pd.DataFrame())
        return _json(
            {
                "loaded": bool(data_ctx.get("loaded", False)),
                "source": data_ctx.get("source"),
                "error": data_ctx.get("error"),
                "records": int(len(records)),
            }
        )
    except Exception as exc:
        logger.exception("meta_status failed")
        return _error(exc)


@app.post("/meta/options", response_model=OptionsResponse)
def meta_options(state: DashboardStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        return _json({"options": all_filter_options(data_ctx.get("records", pd.DataFrame()), s.filters)})
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.post("/dashboard")
def dashboard(state: DashboardStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        return _json(compute_dashboard(s, data_ctx, include_charts=state.include_charts))
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/records")
def records(state: DashboardStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_records(s, ctx))
    except Exception as exc:
        logger.exception("records failed")
        return _error(exc)


@app.get("/records/{record_id}")
def record_detail(record_id: int):
    try:
        data_ctx = load_dashboard_data()
        ctx = prepare_context(None, data_ctx)
        detail = compute_record_detail(ctx, record_id)
    except Exception as exc:
        logger.exception("record_detail failed")
        return _error(exc)
    if detail is None:
        return JSONResponse(status_code=404, content={"error": f"record {record_id} not found"})
    return _json(detail)


@app.post("/debug")
def debug(state: DashboardStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_debug(s, ctx))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.post("/export")
def export_records(state: DashboardStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state)
        ctx = prepare_context(s, data_ctx)
        csv_bytes = export_frame(ctx).to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=ev_records.csv"},
        )
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
