"""SQLite persistence for equipment records, keyed by (tag, assigned date)."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

from equipment_shared.db import StoreUnavailableError, create_sqlite_connection

from .normalizer import RECORD_FIELDS

logger = logging.getLogger(__name__)

EQUIPMENT_TABLE = "equipment_records"
RECORD_COLUMNS = ["equipment_tag", *RECORD_FIELDS]
_COLUMN_TYPES = {
    "minutes_to_perform": "INTEGER",
    "latitude": "REAL",
    "longitude": "REAL",
}


def init_db(conn: sqlite3.Connection) -> None:
    columns = ",\n            ".join(
        f"{name} {_COLUMN_TYPES.get(name, 'TEXT')}" for name in RECORD_FIELDS
    )
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {EQUIPMENT_TABLE} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            equipment_tag TEXT NOT NULL,
            {columns},
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        f"""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_{EQUIPMENT_TABLE}_tag_date_key
        ON {EQUIPMENT_TABLE}(equipment_tag, IFNULL(assigned_date, ''))
        """
    )
    conn.commit()


@contextmanager
def store_session(database_url: str) -> Iterator[sqlite3.Connection]:
    """Open the store for one batch and close it on every exit path."""
    conn = create_sqlite_connection(database_url)
    try:
        try:
            init_db(conn)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot prepare store: {exc}") from exc
        yield conn
    finally:
        conn.close()


def _to_column(value: Any) -> Any:
    if isinstance(value, datetime):
        # aware timestamps are keyed by instant, whatever offset was sent
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.isoformat()
    return value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def find_record_id(conn: sqlite3.Connection, tag: str, assigned_date: Any) -> Optional[int]:
    # IS instead of = so a null date only matches a null date
    row = conn.execute(
        f"SELECT id FROM {EQUIPMENT_TABLE} WHERE equipment_tag = ? AND assigned_date IS ?",
        (tag, _to_column(assigned_date)),
    ).fetchone()
    return row["id"] if row else None


def insert_record(conn: sqlite3.Connection, tag: str, values: Mapping[str, Any]) -> int:
    now = _now()
    params = [tag, *(_to_column(values.get(name)) for name in RECORD_FIELDS), now, now]
    placeholders = ", ".join("?" for _ in params)
    cursor = conn.execute(
        f"""
        INSERT INTO {EQUIPMENT_TABLE} ({", ".join(RECORD_COLUMNS)}, created_at, updated_at)
        VALUES ({placeholders})
        """,
        params,
    )
    return int(cursor.lastrowid)


def update_record(conn: sqlite3.Connection, record_id: int, tag: str, values: Mapping[str, Any]) -> None:
    """Overwrite every column of the record; absent values become NULL."""
    assignments = ", ".join(f"{name} = ?" for name in RECORD_COLUMNS)
    params = [tag, *(_to_column(values.get(name)) for name in RECORD_FIELDS), _now(), record_id]
    conn.execute(
        f"UPDATE {EQUIPMENT_TABLE} SET {assignments}, updated_at = ? WHERE id = ?",
        params,
    )


def get_record(conn: sqlite3.Connection, record_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(f"SELECT * FROM {EQUIPMENT_TABLE} WHERE id = ?", (record_id,)).fetchone()
    return dict(row) if row else None


def list_records(conn: sqlite3.Connection, limit: int | None = None) -> List[Dict[str, Any]]:
    query = f"SELECT * FROM {EQUIPMENT_TABLE} ORDER BY created_at DESC, id DESC"
    params: List[Any] = []
    if limit:
        query += " LIMIT ?"
        params.append(limit)
    return [dict(row) for row in conn.execute(query, params).fetchall()]
