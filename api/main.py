from __future__ import annotations

import logging
import math
from datetime import date
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CapsuleQueryModel, MetaYearsResponse
from core.data import RECENT_WINDOW, load_dashboard_data, prepare_context
from core.filters import FilterSpec, SortSpec, normalize_filters, normalize_sort
from core.metrics import get_derived_metrics, get_summary_stats
from core.metrics_overview import compute_overview, record_row, records_frame


app = FastAPI(title="Capsule Tracker API", version="0.1.0")
logger = logging.getLogger(__name__)

CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _specs_from_model(model: CapsuleQueryModel) -> tuple[FilterSpec, SortSpec]:
    return normalize_filters(model.filters.model_dump()), normalize_sort(model.sort.model_dump())


def _today(as_of: Optional[date]) -> date:
    # Read the clock once per request so every derived value shares the same "now".
    return as_of or date.today()


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with NaN/inf floats encoded as null."""

    def _safe_float(value: float) -> float | None:
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={float: _safe_float},
        )
    )


@app.get("/meta/years", response_model=MetaYearsResponse)
def meta_years():
    try:
        data_ctx = load_dashboard_data()
        years = [int(y) for y in data_ctx.get("years", [])]
        return _json({"years": years})
    except Exception as exc:
        logger.exception("meta_years failed")
        return _error(exc)


@app.post("/capsules")
def capsules(query: CapsuleQueryModel, as_of: Optional[date] = Query(default=None)):
    try:
        data_ctx = load_dashboard_data()
        f, s = _specs_from_model(query)
        ctx = prepare_context(f, s, data_ctx, _today(as_of))
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("capsules failed")
        return _error(exc)


@app.get("/capsules/{capsule_id}/metrics")
def capsule_metrics(capsule_id: str, as_of: Optional[date] = Query(default=None)):
    try:
        data_ctx = load_dashboard_data()
        record = data_ctx["by_id"].get(capsule_id)
        if record is None:
            return JSONResponse(status_code=404, content={"error": f"Unknown capsule {capsule_id!r}", "type": "NotFound"})
        now = _today(as_of)
        return _json(
            {
                "as_of": now.isoformat(),
                "record": record_row(record, now),
                "metrics": get_derived_metrics(record, now).to_dict(),
            }
        )
    except Exception as exc:
        logger.exception("capsule_metrics failed")
        return _error(exc)


@app.post("/summary")
def summary(
    query: CapsuleQueryModel,
    as_of: Optional[date] = Query(default=None),
    recent_window: int = Query(default=RECENT_WINDOW, ge=1, le=50),
):
    try:
        data_ctx = load_dashboard_data()
        f, s = _specs_from_model(query)
        now = _today(as_of)
        ctx = prepare_context(f, s, data_ctx, now)
        stats = get_summary_stats(ctx["filtered"], now, recent_window=recent_window)
        return _json({"as_of": now.isoformat(), "summary": stats.as_dict()})
    except Exception as exc:
        logger.exception("summary failed")
        return _error(exc)


@app.post("/export/capsules")
def export_capsules(query: CapsuleQueryModel, as_of: Optional[date] = Query(default=None)):
    data_ctx = load_dashboard_data()
    f, s = _specs_from_model(query)
    now = _today(as_of)
    ctx = prepare_context(f, s, data_ctx, now)
    rows = [record_row(r, now) for r in ctx["filtered"]]
    export_df = records_frame(rows, display_headers=True)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = f"capsules-{now.isoformat()}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
