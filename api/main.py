from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import DashboardFiltersModel, MetaYearsResponse
from tuna_core.config import load_settings
from tuna_core.data import load_dashboard_data, prepare_context
from tuna_core.filters import DashboardFilters, normalize_filters
from tuna_core.logging_config import configure_logging
from tuna_core.metrics_overview import compute_overview
from tuna_core.metrics_prices import compute_price_timeline
from tuna_core.metrics_table import compute_table, export_frame, table_frame
from tuna_core.metrics_volumes import compute_volumes
from tuna_core.narrative import compute_narrative


settings = load_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Maldives Tuna Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel, data_ctx: Dict[str, Any]) -> DashboardFilters:
    raw = model.model_dump()
    return normalize_filters(
        raw,
        available_years=data_ctx.get("years", []),
        default_headline_year=data_ctx.get("default_headline_year"),
    )


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


def _error(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _page(name: str, filters: DashboardFiltersModel, compute: Callable[[DashboardFilters, Dict[str, Any]], Dict[str, Any]]):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters, data_ctx)
        ctx = prepare_context(f, data_ctx)
        return _json(compute(f, ctx))
    except Exception as exc:
        return _error(name, exc)


@app.get("/meta/years", response_model=MetaYearsResponse)
def meta_years():
    try:
        data_ctx = load_dashboard_data()
        years = [int(y) for y in data_ctx.get("years", []) or []]
        return _json({"years": years, "default_headline_year": data_ctx.get("default_headline_year")})
    except Exception as exc:
        return _error("meta_years", exc)


@app.get("/rows")
def rows():
    try:
        data_ctx = load_dashboard_data()
        return _json({"rows": [asdict(r) for r in data_ctx.get("rows", ())]})
    except Exception as exc:
        return _error("rows", exc)


@app.post("/overview")
def overview(filters: DashboardFiltersModel):
    return _page("overview", filters, compute_overview)


@app.post("/prices")
def prices(filters: DashboardFiltersModel):
    return _page("prices", filters, compute_price_timeline)


@app.post("/volumes")
def volumes(filters: DashboardFiltersModel):
    return _page("volumes", filters, compute_volumes)


@app.post("/table")
def table(filters: DashboardFiltersModel):
    return _page("table", filters, compute_table)


@app.post("/narrative")
def narrative(filters: DashboardFiltersModel):
    return _page("narrative", filters, compute_narrative)


@app.post("/export/{page}")
def export_page(page: str, filters: DashboardFiltersModel):
    data_ctx = load_dashboard_data()
    f = _filters_from_model(filters, data_ctx)
    ctx = prepare_context(f, data_ctx)

    filename = f"{page}.csv"
    if page == "table":
        export_df = table_frame(ctx["rows"])
    elif page == "rows":
        export_df = export_frame(ctx["rows"])
    else:
        export_df = pd.DataFrame()

    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
