"""
FastAPI application for the Health Auto Export webhook.

Usage:
    uvicorn recon_health.api.app:create_app --factory --port 8000
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from recon_health import __version__
from recon_health.infrastructure.storage.base import MetricsStore
from recon_health.infrastructure.storage.factory import build_store
from recon_health.services.ingestion import IngestionService
from recon_health.utils.exceptions import (
    AuthenticationError,
    EmptyImportError,
    ParsingError,
    StorageError,
)
from recon_health.utils.parameters import AppConfig, default_config

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service  # type: ignore[no-any-return]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@router.post("/health-data")
async def receive_health_data(
    request: Request,
    x_api_key: str | None = Header(None),
    source: str | None = Query(None, description="Force 'csv' or 'json' parsing"),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Import a JSON or CSV export.

    The format follows ``?source=`` when given, else the Content-Type header.
    """
    try:
        service.authorize(x_api_key)
    except AuthenticationError:
        return _error(401, "Unauthorized")

    raw = await request.body()
    try:
        body = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return _error(400, "Could not read file")

    source_hint = source or request.headers.get("content-type", "")

    try:
        summary = await run_in_threadpool(service.ingest, body, source_hint, x_api_key)
    except AuthenticationError:
        return _error(401, "Unauthorized")
    except ParsingError as e:
        logger.info(f"Rejected unreadable upload: {e}")
        return _error(400, "Could not read file")
    except EmptyImportError:
        return _error(422, "No valid data found")
    except StorageError as e:
        logger.error(f"Failed to store upload: {e}")
        return _error(500, "Failed to process data")

    return {
        "success": True,
        "message": summary.message,
        "imported_days": summary.imported_days,
        "date_range": {"start": summary.start_date, "end": summary.end_date},
        "total_days": summary.total_days,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health-data")
def health_check():
    """Service status and endpoint listing."""
    return {
        "status": "ok",
        "service": "RECON Health Intelligence System",
        "version": __version__,
        "endpoints": {"POST /api/health-data": "Submit health data (JSON/CSV)"},
    }


def create_app(config: AppConfig | None = None, store: MetricsStore | None = None) -> FastAPI:
    """Build and return the FastAPI app."""
    config = config or default_config()
    store = store or build_store(config.storage, config.goals)

    app = FastAPI(
        title="RECON Health API",
        description="Health Auto Export ingestion endpoint",
        version=__version__,
    )
    app.state.ingestion_service = IngestionService(
        store,
        ingestion_config=config.ingestion,
        csv_config=config.csv,
        default_identity=config.storage.identity,
    )
    app.include_router(router, prefix="/api", tags=["ingestion"])

    return app
