"""genstats HTTP service.

Thin FastAPI adapter over :class:`UsageStatsService`:
- GET /health: Health check
- GET /stats/units, GET /stats/fields: Supported selectors
- GET /stats/count: Records per bucket
- GET /stats/fields/{field}: Records per bucket and field value
- POST /records: Ingest a generator configuration
- GET /records/count, GET /records/{id}, DELETE /records/{id}
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..core.fields import FieldSelector, UnsupportedFieldError
from ..core.granularity import BucketRangeError, GranularityUnit, UnsupportedUnitError
from ..core.time import ensure_utc, get_current_utc
from ..ingestion import IngestionError
from ..observability import get_logger
from ..service import UsageStatsService
from ..storage import StoreError

__all__ = ["DEFAULT_LOOKBACK_DAYS", "create_stats_app"]

DEFAULT_LOOKBACK_DAYS = 30

log = get_logger("api")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    records: int


class CountResponse(BaseModel):
    """Records in one bucket."""

    date: str
    count: int


class DistributionResponse(BaseModel):
    """Per-value record counts in one bucket."""

    date: str
    values: dict[str, int]


class RecordResponse(BaseModel):
    """Stored record."""

    id: int | None
    created_at: str
    fields: dict[str, Any]
    languages: list[str] = []


class TotalResponse(BaseModel):
    """Total number of stored records."""

    total: int


def create_stats_app(service: UsageStatsService, default_unit: str = "day") -> FastAPI:
    """Create FastAPI app for the stats service.

    Parameters
    ----------
    service
        Service answering the queries
    default_unit
        Granularity used when a request names none

    Returns
    -------
    FastAPI
        Configured FastAPI app
    """
    app = FastAPI(
        title="genstats",
        description="Generator usage statistics bucketed by time",
        version="0.1.0",
    )

    def resolve_after(after: datetime | None) -> datetime:
        if after is None:
            return get_current_utc() - timedelta(days=DEFAULT_LOOKBACK_DAYS)
        return ensure_utc(after)

    @app.exception_handler(UnsupportedUnitError)
    @app.exception_handler(BucketRangeError)
    @app.exception_handler(UnsupportedFieldError)
    @app.exception_handler(IngestionError)
    async def bad_request(request: Request, exc: ValueError) -> JSONResponse:
        log.warning(f"Rejected {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def store_unavailable(request: Request, exc: StoreError) -> JSONResponse:
        log.error(f"Record store failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            timestamp=get_current_utc().isoformat(),
            records=service.count_all(),
        )

    @app.get("/stats/units")
    def units() -> list[str]:
        return [unit.value for unit in GranularityUnit]

    @app.get("/stats/fields")
    def fields() -> list[str]:
        return [selector.value for selector in FieldSelector]

    @app.get("/stats/count", response_model=list[CountResponse])
    def count(after: datetime | None = None, unit: str | None = None) -> list[dict[str, Any]]:
        rows = service.get_count(resolve_after(after), unit or default_unit)
        return [row.to_dict() for row in rows]

    @app.get("/stats/fields/{field}", response_model=list[DistributionResponse])
    def field_count(field: str, after: datetime | None = None, unit: str | None = None) -> list[dict[str, Any]]:
        rows = service.get_field_count(resolve_after(after), field, unit or default_unit)
        return [row.to_dict() for row in rows]

    @app.post("/records", response_model=RecordResponse, status_code=201)
    def ingest(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        return service.ingest(payload).to_dict()

    @app.get("/records/count", response_model=TotalResponse)
    def total() -> TotalResponse:
        return TotalResponse(total=service.count_all())

    @app.get("/records/{record_id}", response_model=RecordResponse)
    def get_record(record_id: int) -> dict[str, Any]:
        record = service.find_one(record_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Record not found: {record_id}")
        return record.to_dict()

    @app.delete("/records/{record_id}", status_code=204)
    def delete_record(record_id: int) -> None:
        if not service.delete(record_id):
            raise HTTPException(status_code=404, detail=f"Record not found: {record_id}")

    return app
