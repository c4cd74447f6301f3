"""FastAPI server receiving equipment batches from the spreadsheet automation."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from equipment_shared.config import IngestSettings
from equipment_shared.db import StoreUnavailableError
from equipment_shared.logging_config import configure_logging

from .catalog_sync import CatalogSyncService
from .env_loader import load_project_dotenv
from .pipeline import BatchRequestError, build_catalog_service, process_batch, run_catalog_test
from .store import list_records, store_session

load_project_dotenv()
configure_logging()

logger = logging.getLogger(__name__)

app = FastAPI(title="Equipment Ingest API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"error": f"Invalid request: {message}"}, status_code=400)


def get_settings() -> IngestSettings:
    return IngestSettings.from_env()


def get_catalog(settings: IngestSettings = Depends(get_settings)) -> CatalogSyncService:
    return build_catalog_service(settings)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok", "timestamp": _now()}


@app.get("/api/debug")
def debug(settings: IngestSettings = Depends(get_settings)) -> dict:
    return {
        "status": "debug-ok",
        "env": {
            "DATABASE_URL": "present" if settings.database_url else "missing",
            "CATALOG_API_KEY": "present" if settings.catalog_api_key else "missing",
            "CATALOG_BASE_URL": settings.catalog_base_url or "missing",
        },
        "timestamp": _now(),
    }


@app.post("/batch")
@app.post("/api/simple-batch")
def receive_batch(
    payload: Any = Body(None),
    settings: IngestSettings = Depends(get_settings),
    catalog: CatalogSyncService = Depends(get_catalog),
):
    try:
        return process_batch(payload, settings, catalog=catalog)
    except BatchRequestError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except StoreUnavailableError as exc:
        logger.error("Store unavailable: %s", exc)
        return JSONResponse({"error": "Database connection failed", "details": str(exc)}, status_code=500)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Batch processing error")
        return JSONResponse({"error": "Internal server error", "details": str(exc)}, status_code=500)


@app.get("/api/equipment")
def equipment_list(
    limit: int | None = Query(None, ge=1, le=5000),
    settings: IngestSettings = Depends(get_settings),
):
    try:
        with store_session(settings.database_url) as conn:
            rows = list_records(conn, limit=limit)
    except StoreUnavailableError as exc:
        return JSONResponse({"error": "Database connection failed", "details": str(exc)}, status_code=500)
    return {"rows": rows, "total": len(rows)}


@app.post("/api/test-catalog")
def test_catalog(
    payload: Any = Body(None),
    catalog: CatalogSyncService = Depends(get_catalog),
):
    data_rows = payload.get("testData") if isinstance(payload, dict) else None
    try:
        return run_catalog_test(data_rows, catalog)
    except BatchRequestError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
