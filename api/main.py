from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import YearlyStatsRequest
from wci_core.charts import yearly_trend_charts
from wci_core.data import list_periods, load_period_sources, load_snapshot, previous_period
from wci_core.errors import PeriodNotFoundError, SnapshotIngestError
from wci_core.metrics_display import compute_display_table
from wci_core.metrics_yearly import aggregate_yearly, yearly_frame
from wci_core.settings import DashboardSettings, load_settings


app = FastAPI(title="WCI Account Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> DashboardSettings:
    return load_settings()


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


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/api/data")
def account_data(month: Optional[str] = Query(default=None)):
    settings = get_settings()
    try:
        if not month:
            periods = list_periods(settings.data_dir)
            return _json({"months": list(reversed(periods))})
        snapshot = load_snapshot(settings.data_dir, month)
        return _json({"data": [r.as_dict() for r in snapshot.records]})
    except PeriodNotFoundError as exc:
        return _error(404, exc)
    except SnapshotIngestError as exc:
        logger.warning("month %s could not be ingested: %s", month, exc)
        return _error(400, exc)
    except Exception as exc:
        logger.exception("account_data failed")
        return _error(500, exc)


@app.get("/api/display")
def display(month: str = Query(...)):
    settings = get_settings()
    try:
        current = load_snapshot(settings.data_dir, month)
        prev_month = previous_period(list_periods(settings.data_dir), month)
        previous = None
        if prev_month is not None:
            try:
                previous = load_snapshot(settings.data_dir, prev_month)
            except (PeriodNotFoundError, SnapshotIngestError) as exc:
                # The current month is still shown, just without forward deltas.
                logger.warning("previous month %s unavailable: %s", prev_month, exc)
                prev_month = None
        rows = compute_display_table(current, previous)
        return _json({"month": month, "previous_month": prev_month, "rows": [r.to_payload() for r in rows]})
    except PeriodNotFoundError as exc:
        return _error(404, exc)
    except SnapshotIngestError as exc:
        logger.warning("month %s could not be ingested: %s", month, exc)
        return _error(400, exc)
    except Exception as exc:
        logger.exception("display failed")
        return _error(500, exc)


def _yearly_payload(settings: DashboardSettings, accounts: Sequence[str], months: Sequence[str]) -> dict:
    periods: List[str] = list_periods(settings.data_dir)
    if months:
        wanted = set(months)
        periods = [p for p in periods if p in wanted]
    sources = load_period_sources(settings.data_dir, periods, max_workers=settings.max_workers)
    report = aggregate_yearly(sources, tracked_accounts=list(accounts) or settings.tracked_accounts)
    payload = report.to_payload()
    payload["charts"] = yearly_trend_charts(yearly_frame(report))
    return payload


@app.get("/api/yearly-stats")
def yearly_stats():
    settings = get_settings()
    try:
        if not settings.data_dir.is_dir():
            return JSONResponse(status_code=404, content={"error": "数据目录不存在", "type": "PeriodNotFoundError"})
        return _json(_yearly_payload(settings, settings.tracked_accounts, []))
    except Exception as exc:
        logger.exception("yearly_stats failed")
        return _error(500, exc)


@app.post("/api/yearly-stats")
def yearly_stats_custom(request: YearlyStatsRequest):
    settings = get_settings()
    try:
        if not settings.data_dir.is_dir():
            return JSONResponse(status_code=404, content={"error": "数据目录不存在", "type": "PeriodNotFoundError"})
        accounts = [a.strip() for a in request.accounts if a and a.strip()]
        return _json(_yearly_payload(settings, accounts, request.months))
    except Exception as exc:
        logger.exception("yearly_stats_custom failed")
        return _error(500, exc)
