"""Create-or-update of normalized drafts, one independent outcome per row."""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .normalizer import EquipmentDraft
from .store import find_record_id, get_record, insert_record, update_record

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
FAILED = "failed"


@dataclass
class UpsertOutcome:
    draft: EquipmentDraft
    action: str
    record_id: Optional[int] = None
    record: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def row_number(self) -> Any:
        return self.draft.row_number

    @property
    def ok(self) -> bool:
        return self.action != FAILED


def upsert_draft(conn: sqlite3.Connection, draft: EquipmentDraft) -> UpsertOutcome:
    tag = draft.equipment_tag
    try:
        # lookup and write run in one serialized write transaction
        conn.execute("BEGIN IMMEDIATE")
        existing_id = find_record_id(conn, tag, draft.assigned_date)
        if existing_id is not None:
            update_record(conn, existing_id, tag, draft.values)
            record_id, action = existing_id, UPDATED
        else:
            record_id, action = insert_record(conn, tag, draft.values), CREATED
        conn.commit()
        record = get_record(conn, record_id)
    except (sqlite3.Error, OverflowError) as exc:
        if conn.in_transaction:
            conn.rollback()
        logger.warning("Row %s (%s) could not be stored: %s", draft.row_number, tag, exc)
        return UpsertOutcome(draft, FAILED, error=str(exc))
    logger.info("Row %s %s as record %s (%s)", draft.row_number, action, record_id, tag)
    return UpsertOutcome(draft, action, record_id=record_id, record=record)


def upsert_batch(conn: sqlite3.Connection, drafts: Iterable[EquipmentDraft]) -> List[UpsertOutcome]:
    """Upsert every draft in order.

    Writes share the batch connection and run one after another, so two drafts
    with the same (tag, date) key can never both be inserted.
    """
    return [upsert_draft(conn, draft) for draft in drafts]
