"""One batch from the spreadsheet automation, end to end.

normalize rows -> upsert drafts -> catalog hook for stored rows -> response body
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from equipment_shared.config import IngestSettings

from .catalog_client import CatalogClient
from .catalog_sync import CatalogSyncService, SyncSummary
from .coordinator import UpsertOutcome, upsert_batch
from .normalizer import EquipmentDraft, RowValidationError, normalize_row
from .store import store_session

logger = logging.getLogger(__name__)

StoreFactory = Callable[[str], AbstractContextManager]


class BatchRequestError(ValueError):
    """The batch envelope itself is unusable; nothing was processed."""


def parse_rows(payload: Any) -> List[Any]:
    if not isinstance(payload, Mapping):
        raise BatchRequestError("Request body must be a JSON object")
    rows = payload.get("rows")
    if not isinstance(rows, list):
        raise BatchRequestError("Invalid request format: rows must be an array")
    if not rows:
        raise BatchRequestError("No rows provided in batch")
    return rows


def build_catalog_service(settings: IngestSettings) -> CatalogSyncService:
    if not settings.catalog_enabled:
        logger.info("CATALOG_API_KEY not configured, catalog sync disabled")
        return CatalogSyncService(None)
    client = CatalogClient(
        settings.catalog_base_url,
        settings.catalog_api_key,
        timeout=settings.catalog_timeout,
    )
    return CatalogSyncService(client, delay=settings.catalog_sync_delay)


def normalize_rows(rows: Sequence[Any]) -> tuple[List[EquipmentDraft], List[Dict[str, Any]]]:
    drafts: List[EquipmentDraft] = []
    failures: List[Dict[str, Any]] = []
    for index, row in enumerate(rows, start=1):
        row_number = row.get("rowNumber", index) if isinstance(row, Mapping) else index
        try:
            if not isinstance(row, Mapping):
                raise RowValidationError(row_number, "row must be an object")
            drafts.append(normalize_row(row_number, row.get("data") or {}, fallback_tag=row.get("tag")))
        except RowValidationError as exc:
            logger.warning("Row %s rejected: %s", exc.row_number, exc.reason)
            failures.append({"rowNumber": exc.row_number, "error": exc.reason})
    return drafts, failures


def run_catalog_hook(
    catalog: CatalogSyncService,
    outcomes: Sequence[UpsertOutcome],
    max_workers: int = 4,
) -> Dict[int, SyncSummary]:
    """Sync the rows that were stored; keyed by position in ``outcomes``."""
    stored = [(pos, outcome) for pos, outcome in enumerate(outcomes) if outcome.ok]
    if not catalog.enabled or not stored:
        return {pos: SyncSummary() for pos, _ in stored}

    workers = max(1, min(max_workers, len(stored)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="catalog-sync") as pool:
        futures = {
            pos: pool.submit(catalog.sync_row, outcome.draft.raw, outcome.draft.equipment_tag)
            for pos, outcome in stored
        }
        return {pos: future.result() for pos, future in futures.items()}


def _result_entry(outcome: UpsertOutcome, summary: Optional[SyncSummary]) -> Dict[str, Any]:
    if not outcome.ok:
        return {"rowNumber": outcome.row_number, "error": outcome.error}
    return {
        "rowNumber": outcome.row_number,
        "id": outcome.record_id,
        "action": outcome.action,
        "tag": outcome.draft.equipment_tag,
        "components": outcome.draft.tag.components.as_dict(),
        "data": outcome.record,
        "catalog": (summary or SyncSummary()).as_dict(),
    }


def process_batch(
    payload: Any,
    settings: IngestSettings,
    catalog: Optional[CatalogSyncService] = None,
    store_factory: StoreFactory = store_session,
) -> Dict[str, Any]:
    """Run one batch and return the response body.

    Raises BatchRequestError for a malformed envelope (before touching the
    store) and StoreUnavailableError when the store cannot be opened.
    """
    rows = parse_rows(payload)
    logger.info("Received batch from sheet %r with %d rows", payload.get("sheet"), len(rows))

    drafts, failures = normalize_rows(rows)
    outcomes: List[UpsertOutcome] = []
    if drafts:
        with store_factory(settings.database_url) as conn:
            outcomes = upsert_batch(conn, drafts)

    if catalog is None:
        catalog = build_catalog_service(settings)
    summaries = run_catalog_hook(catalog, outcomes, max_workers=settings.catalog_max_workers)

    results = [_result_entry(outcome, summaries.get(pos)) for pos, outcome in enumerate(outcomes)]
    error_details = failures + [
        {"rowNumber": outcome.row_number, "error": outcome.error} for outcome in outcomes if not outcome.ok
    ]
    total_sync = SyncSummary()
    for summary in summaries.values():
        total_sync.merge(summary)

    processed = sum(1 for outcome in outcomes if outcome.ok)
    logger.info(
        "Batch processed: %d stored, %d errors, catalog %d/%d",
        processed,
        len(error_details),
        total_sync.succeeded,
        total_sync.attempted,
    )
    return {
        "success": True,
        "message": f"Processed {len(rows)} rows",
        "processed": processed,
        "errors": len(error_details),
        "results": results,
        "errorDetails": error_details,
        "catalog": total_sync.as_dict(),
    }


def run_catalog_test(data_rows: Any, catalog: CatalogSyncService) -> Dict[str, Any]:
    """Sync raw rows without storing them."""
    if not isinstance(data_rows, list) or not data_rows:
        raise BatchRequestError("testData must be a non-empty array")
    total = SyncSummary()
    for data in data_rows:
        if not isinstance(data, Mapping):
            total.errors.append("Error: testData entries must be objects")
            continue
        total.merge(catalog.sync_row(data))
    return {"processed": total.attempted, "successful": total.succeeded, "errors": total.errors}
