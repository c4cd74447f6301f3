"""HTTPS client for the external list catalog (metadata objects)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """A catalog call failed: transport error, timeout or non-2xx status."""


class CatalogClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": api_key,
                "Content-Type": "application/json",
            }
        )

    def _request(self, method: str, path: str, list_id: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}/{path}"
        try:
            resp = self.session.request(
                method,
                url,
                params={"metadata_type": list_id},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            raise CatalogError(f"{method} {path} for {list_id} timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise CatalogError(f"{method} {path} for {list_id} failed: {exc}") from exc
        if not resp.ok:
            raise CatalogError(
                f"{method} {path} for {list_id} returned {resp.status_code}: {resp.text[:200]}"
            )
        return resp

    def list_entries(self, list_id: str) -> List[Dict[str, Any]]:
        resp = self._request("GET", "metadata_objects", list_id)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise CatalogError(f"List {list_id} returned invalid JSON") from exc
        if not isinstance(payload, list):
            raise CatalogError(f"List {list_id} returned {type(payload).__name__}, expected a list")
        return [item for item in payload if isinstance(item, dict)]

    def create_entry(self, list_id: str, entry: Dict[str, Any]) -> Any:
        resp = self._request("POST", "metadata_object", list_id, json={"list_object": entry})
        try:
            return resp.json()
        except ValueError:
            return None
