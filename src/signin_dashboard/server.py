"""FastAPI app exposing the sign-in log dashboards and CSV export."""
from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import PERIOD_SLOTS, REASONS, YEAR_GROUPS, LogVariant, configure_logging, get_variant, load_settings
from .date_range import DateRange, coerce_timezone, today_in
from .export import export_filename, to_csv
from .models import record_rows
from .repository import RecordStore, RecordStoreError, build_record_store_from_env
from .service import SignInDashboardService
from .session import DashboardSession

settings = load_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Sign-in Log Dashboard API", version="0.1.0")
record_store: Optional[RecordStore] = build_record_store_from_env()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class VocabularyResponse(BaseModel):
    year_groups: List[int]
    periods: List[int]
    reasons: List[str]


class DashboardResponse(BaseModel):
    data: Dict[str, Any]


class EntriesResponse(BaseModel):
    variant: str
    entries: List[Dict[str, Any]]


def get_record_store() -> RecordStore:
    if record_store is None:
        raise HTTPException(
            status_code=503,
            detail="SIGNIN_DASHBOARD_DATABASE_URL is not configured.",
        )
    return record_store


def _resolve_variant(variant: str) -> LogVariant:
    try:
        return get_variant(variant)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc


def _resolve_range(start: Optional[date], end: Optional[date], now: Optional[datetime] = None) -> DateRange:
    # "Today" is the configured zone's calendar day, not the host's.
    today = today_in(coerce_timezone(settings.timezone), now)
    default = DateRange.default(days=settings.default_window_days, today=today)
    return DateRange(start=start or default.start, end=end or default.end)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/vocabularies", response_model=VocabularyResponse)
async def vocabularies() -> VocabularyResponse:
    return VocabularyResponse(year_groups=list(YEAR_GROUPS), periods=list(PERIOD_SLOTS), reasons=list(REASONS))


@app.get("/{variant}/dashboard", response_model=DashboardResponse)
async def dashboard_endpoint(
    variant: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    max_bars: Optional[int] = Query(None, ge=1, le=50),
    store: RecordStore = Depends(get_record_store),
) -> DashboardResponse:
    log_variant = _resolve_variant(variant)
    session = DashboardSession(store, log_variant, _resolve_range(start, end))
    await session.load()

    service = SignInDashboardService(log_variant, settings)
    result = service.build(session.records, session.date_range, max_bars=max_bars, error=session.error)
    return DashboardResponse(data=result.as_dict())


@app.get("/{variant}/export")
async def export_endpoint(
    variant: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    store: RecordStore = Depends(get_record_store),
) -> Response:
    log_variant = _resolve_variant(variant)
    date_range = _resolve_range(start, end)
    try:
        records = await asyncio.to_thread(store.query, log_variant, date_range)
    except RecordStoreError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if not records:
        return Response(status_code=204)

    filename = export_filename(log_variant, date_range)
    return Response(
        content=to_csv(records),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/{variant}/entries", response_model=EntriesResponse)
async def recent_entries(
    variant: str,
    limit: int = Query(settings.recent_limit, ge=1, le=500),
    store: RecordStore = Depends(get_record_store),
) -> EntriesResponse:
    log_variant = _resolve_variant(variant)
    try:
        records = await asyncio.to_thread(store.recent, log_variant, limit)
    except RecordStoreError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    entries = [
        {key: (value.isoformat() if hasattr(value, "isoformat") else value) for key, value in row.items()}
        for row in record_rows(records)
    ]
    return EntriesResponse(variant=log_variant.key, entries=entries)
