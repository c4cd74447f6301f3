from unittest.mock import MagicMock

import pytest
import requests

from equipment_ingest.catalog_client import CatalogClient, CatalogError


def _response(status: int = 200, payload=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.text = text
    resp.json.return_value = payload
    return resp


@pytest.fixture
def session() -> MagicMock:
    fake = MagicMock(spec=requests.Session)
    fake.headers = {}
    return fake


def test_list_entries_sends_auth_and_list_id(session) -> None:
    session.request.return_value = _response(payload=[{"name": "A"}, "junk"])
    client = CatalogClient("https://catalog.example/api/external/", "key-1", timeout=3, session=session)

    assert client.list_entries("L64_4829") == [{"name": "A"}]
    session.request.assert_called_once_with(
        "GET",
        "https://catalog.example/api/external/metadata_objects",
        params={"metadata_type": "L64_4829"},
        timeout=3,
    )
    assert session.headers["Authorization"] == "key-1"


def test_create_entry_wraps_list_object(session) -> None:
    session.request.return_value = _response(payload={"id": 5})
    client = CatalogClient("https://catalog.example/api/external", "key-1", session=session)

    entry = {"name": "Maria", "code": "maria_0001"}
    assert client.create_entry("Ejecutadorpor_9519a06c", entry) == {"id": 5}
    _, kwargs = session.request.call_args
    assert session.request.call_args.args[1].endswith("/metadata_object")
    assert kwargs["json"] == {"list_object": entry}
    assert kwargs["params"] == {"metadata_type": "Ejecutadorpor_9519a06c"}


def test_non_success_status_raises(session) -> None:
    session.request.return_value = _response(status=429, text="Too many requests")
    client = CatalogClient("https://catalog.example", "k", session=session)

    with pytest.raises(CatalogError, match="429"):
        client.list_entries("L1")


def test_timeout_raises_catalog_error(session) -> None:
    session.request.side_effect = requests.Timeout("slow")
    client = CatalogClient("https://catalog.example", "k", timeout=1.5, session=session)

    with pytest.raises(CatalogError, match="timed out"):
        client.create_entry("L1", {"name": "x"})


def test_unexpected_payload_shape_raises(session) -> None:
    session.request.return_value = _response(payload={"items": []})
    client = CatalogClient("https://catalog.example", "k", session=session)

    with pytest.raises(CatalogError):
        client.list_entries("L1")
