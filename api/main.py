from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ChannelsResponse, DashboardFiltersModel, ReloadResponse
from core.data import DashboardStore, FeedError, prepare_context
from core.filters import DashboardFilters
from core.metrics_channels import compute_channels
from core.metrics_detail import compute_detail, detail_frame
from core.metrics_overview import compute_overview
from core.settings import configure_logging, load_settings

settings = load_settings()
configure_logging(settings)

app = FastAPI(title="Sales & Media Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STORE = DashboardStore(settings)


def _filters_from_model(model: Optional[DashboardFiltersModel]) -> DashboardFilters:
    raw = model.model_dump(exclude_unset=True) if model is not None else {}
    return STORE.filters_from(raw)


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
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _context(filters: DashboardFilters) -> Dict[str, Any]:
    return prepare_context(filters, STORE.ensure_loaded())


@app.get("/meta/channels")
def meta_channels():
    try:
        data = STORE.ensure_loaded()
        return _json(
            ChannelsResponse(
                canonical=list(data.get("canonical_channels", [])),
                in_data=list(data.get("channels", [])),
                default=list(data.get("default_channels", [])),
            ).model_dump()
        )
    except FeedError as exc:
        logger.exception("meta_channels failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("meta_channels failed")
        return _error(exc)


@app.post("/reload")
def reload():
    try:
        data = STORE.reload()
    except FeedError as exc:
        logger.exception("reload failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("reload failed")
        return _error(exc)
    loaded_at = data.get("loaded_at")
    return _json(
        ReloadResponse(
            ok=True,
            sales_records=len(data["sales"]),
            investment_records=len(data["investment"]),
            default_channels=list(data.get("default_channels", [])),
            loaded_at=loaded_at.isoformat(timespec="seconds") if loaded_at else None,
        ).model_dump()
    )


@app.post("/dashboard")
def dashboard(filters: Optional[DashboardFiltersModel] = None):
    try:
        STORE.ensure_loaded()
        f = _filters_from_model(filters)
        return _json(STORE.snapshot(f))
    except FeedError as exc:
        logger.exception("dashboard failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/overview")
def overview(filters: Optional[DashboardFiltersModel] = None):
    try:
        STORE.ensure_loaded()
        f = _filters_from_model(filters)
        return _json(compute_overview(f, _context(f)))
    except FeedError as exc:
        logger.exception("overview failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/channels")
def channels(filters: Optional[DashboardFiltersModel] = None):
    try:
        STORE.ensure_loaded()
        f = _filters_from_model(filters)
        return _json(compute_channels(f, _context(f), settings=STORE.settings))
    except FeedError as exc:
        logger.exception("channels failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("channels failed")
        return _error(exc)


@app.post("/detail")
def detail(filters: Optional[DashboardFiltersModel] = None):
    try:
        STORE.ensure_loaded()
        f = _filters_from_model(filters)
        return _json(compute_detail(f, _context(f)))
    except FeedError as exc:
        logger.exception("detail failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("detail failed")
        return _error(exc)


@app.post("/export/detail")
def export_detail(filters: Optional[DashboardFiltersModel] = None):
    try:
        STORE.ensure_loaded()
        f = _filters_from_model(filters)
        export_df = detail_frame(_context(f))
    except FeedError as exc:
        logger.exception("export_detail failed")
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("export_detail failed")
        return _error(exc)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=detalhe.csv"},
    )
