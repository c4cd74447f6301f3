"""Shared helpers for the equipment ingest service."""

from .config import IngestSettings
from .db import StoreUnavailableError, create_sqlite_connection

__all__ = ["IngestSettings", "StoreUnavailableError", "create_sqlite_connection"]
