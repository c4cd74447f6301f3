from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SHARED_SRC = ROOT / "packages" / "equipment-shared" / "src"
APP_SRC = ROOT / "apps" / "AppIngest" / "src"

for path in (SHARED_SRC, APP_SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from equipment_ingest.catalog_client import CatalogError  # noqa: E402
from equipment_shared.config import IngestSettings  # noqa: E402


class FakeCatalog:
    """In-memory stand-in for CatalogClient."""

    def __init__(self, lists: Dict[str, List[Dict[str, Any]]] | None = None) -> None:
        self.lists = {key: list(value) for key, value in (lists or {}).items()}
        self.list_calls: List[str] = []
        self.created: List[tuple[str, Dict[str, Any]]] = []
        self.fail_list = False
        self.fail_create = False

    def list_entries(self, list_id: str) -> List[Dict[str, Any]]:
        self.list_calls.append(list_id)
        if self.fail_list:
            raise CatalogError(f"GET metadata_objects for {list_id} returned 503: unavailable")
        return list(self.lists.get(list_id, []))

    def create_entry(self, list_id: str, entry: Dict[str, Any]) -> Any:
        if self.fail_create:
            raise CatalogError(f"POST metadata_object for {list_id} returned 422: duplicate")
        self.created.append((list_id, entry))
        self.lists.setdefault(list_id, []).append(entry)
        return {"id": len(self.created), **entry}


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'equipment.db'}"


@pytest.fixture
def settings(database_url: str) -> IngestSettings:
    return IngestSettings(
        catalog_base_url="https://catalog.example/api/external",
        catalog_api_key="test-key",
        database_url=database_url,
        catalog_sync_delay=0,
    )
