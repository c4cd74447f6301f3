"""Mirror free-text "Otro" answers and equipment tags into the external catalog.

The catalog is a side channel: nothing here raises past ``sync_row``. Every
failure ends up as a string in the returned summary, and the caller's
persistence outcome is never touched.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .catalog_client import CatalogError
from .tag_resolver import is_synthetic_tag, resolve_tag, tag_components

logger = logging.getLogger(__name__)

OTHER_SENTINEL = "Otro"
TAG_LIST_ID = "L64_4829"
TAG_FIELD_NAME = "Numero de Equipo (Tag)"
CODE_MAX_LENGTH = 20


@dataclass(frozen=True)
class OtherFieldRule:
    primary_field: str
    override_field: str
    list_id: str


OTHER_FIELD_RULES: Sequence[OtherFieldRule] = (
    OtherFieldRule("Ejecutado por", "Otro - Ejecutado por", "Ejecutadorpor_9519a06c"),
    OtherFieldRule("Tipo de Equipo", "Otro - Tipo de Equipo", "L27_1a17"),
)


@dataclass
class CatalogSyncRequest:
    list_id: str
    value: str
    field_name: str
    source_field: str
    source_data: Mapping[str, Any] = field(repr=False, default_factory=dict)
    description: Optional[str] = None
    attribute1: str = ""
    attribute2: str = ""


@dataclass
class SyncSummary:
    attempted: int = 0
    succeeded: int = 0
    errors: List[str] = field(default_factory=list)

    def merge(self, other: "SyncSummary") -> None:
        self.attempted += other.attempted
        self.succeeded += other.succeeded
        self.errors.extend(other.errors)

    def as_dict(self) -> Dict[str, Any]:
        return {"attempted": self.attempted, "succeeded": self.succeeded, "errors": list(self.errors)}


class CatalogBackend(Protocol):
    def list_entries(self, list_id: str) -> List[Dict[str, Any]]: ...

    def create_entry(self, list_id: str, entry: Dict[str, Any]) -> Any: ...


_CODE_SANITIZER = re.compile(r"[^a-z0-9]+")


def generate_code(value: str, now_ms: Optional[int] = None) -> str:
    base = _CODE_SANITIZER.sub("_", value.lower()).strip("_")[:CODE_MAX_LENGTH]
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    return f"{base}_{str(stamp)[-4:]}"


def detect_requests(
    data: Mapping[str, Any],
    tag: Optional[str] = None,
    rules: Sequence[OtherFieldRule] = OTHER_FIELD_RULES,
) -> List[CatalogSyncRequest]:
    """Collect the sync requests one row implies.

    ``tag`` is the resolved equipment tag; when omitted it is resolved from
    ``data``. Synthetic ``AUTO-`` tags are never proposed.
    """
    found: List[CatalogSyncRequest] = []
    for rule in rules:
        override = data.get(rule.override_field)
        if data.get(rule.primary_field) != OTHER_SENTINEL:
            continue
        if not isinstance(override, str) or not override.strip():
            continue
        found.append(
            CatalogSyncRequest(
                list_id=rule.list_id,
                value=override.strip(),
                field_name=rule.primary_field,
                source_field=rule.override_field,
                source_data=data,
            )
        )

    if tag is None:
        tag = resolve_tag(data).value
    tag = (tag or "").strip()
    if tag and not is_synthetic_tag(tag):
        parts = tag_components(data)
        description = None
        if parts.type or parts.number:
            description = f"Equipo: {parts.type or ''} - {parts.number or ''}"
        found.append(
            CatalogSyncRequest(
                list_id=TAG_LIST_ID,
                value=tag,
                field_name=TAG_FIELD_NAME,
                source_field=TAG_FIELD_NAME,
                source_data=data,
                description=description,
                attribute1=parts.area or "",
                attribute2=parts.type or "",
            )
        )
    return found


class CatalogSyncService:
    def __init__(
        self,
        client: Optional[CatalogBackend],
        delay: float = 2.0,
        rules: Sequence[OtherFieldRule] = OTHER_FIELD_RULES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.delay = delay
        self.rules = rules
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _require_client(self) -> CatalogBackend:
        if self.client is None:
            raise CatalogError("Catalog sync is disabled: no catalog client configured")
        return self.client

    def exists(self, list_id: str, value: str) -> bool:
        """True only when the catalog confirms the value; any failure counts as absent."""
        client = self._require_client()
        try:
            entries = client.list_entries(list_id)
        except CatalogError as exc:
            logger.warning("Existence check for %r in %s not confirmed: %s", value, list_id, exc)
            return False
        wanted = value.lower()
        for entry in entries:
            for key in ("name", "code"):
                candidate = entry.get(key)
                if isinstance(candidate, str) and candidate.lower() == wanted:
                    return True
        return False

    def add_to_list(self, request: CatalogSyncRequest) -> None:
        """Ensure ``request.value`` is in its list. Raises CatalogError on creation failure."""
        client = self._require_client()
        if self.exists(request.list_id, request.value):
            logger.info("%r already in %s list, skipping", request.value, request.field_name)
            return
        entry = {
            "name": request.value,
            "description": request.description or f"Auto-added from form: {request.value}",
            "code": generate_code(request.value),
            "attribute1": request.attribute1,
            "attribute2": request.attribute2,
        }
        client.create_entry(request.list_id, entry)
        logger.info("Added %r to %s list (%s)", request.value, request.field_name, request.list_id)

    def sync_requests(self, pending: Sequence[CatalogSyncRequest]) -> SyncSummary:
        summary = SyncSummary()
        for index, request in enumerate(pending):
            if index and self.delay > 0:
                # stay under the catalog's rate limiter
                self._sleep(self.delay)
            summary.attempted += 1
            try:
                self.add_to_list(request)
            except CatalogError as exc:
                summary.errors.append(f'Failed to add "{request.value}" to {request.field_name}: {exc}')
                logger.warning("Catalog sync of %r failed: %s", request.value, exc)
                continue
            except Exception as exc:  # noqa: BLE001
                summary.errors.append(f'Error processing "{request.value}": {exc}')
                logger.exception("Unexpected catalog sync error for %r", request.value)
                continue
            summary.succeeded += 1
        return summary

    def sync_row(self, data: Mapping[str, Any], tag: Optional[str] = None) -> SyncSummary:
        if not self.enabled:
            return SyncSummary()
        try:
            found = detect_requests(data, tag=tag, rules=self.rules)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Catalog detection failed")
            return SyncSummary(errors=[f"Catalog detection error: {exc}"])
        return self.sync_requests(found)
