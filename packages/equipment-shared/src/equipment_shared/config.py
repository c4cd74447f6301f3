"""Runtime configuration for the ingest service and its catalog side channel."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[4]
DEFAULT_CATALOG_BASE_URL = "https://www.mydatascope.com/api/external"
DEFAULT_DATABASE_URL = f"sqlite:///{PROJECT_ROOT / 'data' / 'equipment.db'}"


def _clean_url(value: str | None) -> str:
    return (value or "").strip().rstrip("/")


def _first_env(*keys: str) -> str:
    for key in keys:
        value = (os.getenv(key) or "").strip()
        if value:
            return value
    return ""


def _float_env(key: str, default: float) -> float:
    try:
        value = float(os.getenv(key, ""))
    except ValueError:
        return default
    return value if value >= 0 else default


def _int_env(key: str, default: int) -> int:
    try:
        value = int(os.getenv(key, ""))
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class IngestSettings:
    catalog_base_url: str
    catalog_api_key: str
    database_url: str
    catalog_timeout: float = 10.0
    catalog_sync_delay: float = 2.0
    catalog_max_workers: int = 4

    @property
    def catalog_enabled(self) -> bool:
        return bool(self.catalog_api_key)

    @classmethod
    def from_env(cls) -> "IngestSettings":
        return cls(
            catalog_base_url=_clean_url(_first_env("CATALOG_BASE_URL", "DATASCOPE_BASE_URL"))
            or DEFAULT_CATALOG_BASE_URL,
            catalog_api_key=_first_env("CATALOG_API_KEY", "DATASCOPE_API_KEY"),
            database_url=_first_env("DATABASE_URL") or DEFAULT_DATABASE_URL,
            catalog_timeout=_float_env("CATALOG_TIMEOUT", 10.0),
            catalog_sync_delay=_float_env("CATALOG_SYNC_DELAY", 2.0),
            catalog_max_workers=_int_env("CATALOG_MAX_WORKERS", 4),
        )
