"""Database helpers shared across the ingest service."""

from __future__ import annotations

import sqlite3
from pathlib import Path

SQLITE_PREFIX = "sqlite:///"


class StoreUnavailableError(RuntimeError):
    """The primary store could not be opened."""


def sqlite_path_from_url(url: str) -> str:
    value = (url or "").strip()
    if value.startswith(SQLITE_PREFIX):
        value = value[len(SQLITE_PREFIX):]
    if not value:
        raise StoreUnavailableError("DATABASE_URL is empty.")
    return value


def create_sqlite_connection(url: Path | str) -> sqlite3.Connection:
    path = sqlite_path_from_url(str(url))
    try:
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path)
    except (sqlite3.Error, OSError) as exc:
        raise StoreUnavailableError(f"Cannot open store at {path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn
