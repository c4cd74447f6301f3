import pytest
from fastapi.testclient import TestClient

from equipment_ingest.catalog_sync import CatalogSyncService
from equipment_ingest.web_server import app, get_catalog, get_settings


@pytest.fixture
def client(settings, fake_catalog):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_catalog] = lambda: CatalogSyncService(fake_catalog, delay=0)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client) -> None:
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_debug_reports_presence_without_secrets(client) -> None:
    body = client.get("/api/debug").json()
    assert body["env"]["CATALOG_API_KEY"] == "present"
    assert body["env"]["DATABASE_URL"] == "present"
    assert "test-key" not in str(body)


def test_batch_creates_and_lists(client, fake_catalog) -> None:
    payload = {
        "sheet": "Respuestas",
        "rows": [
            {
                "rowNumber": 2,
                "data": {
                    "Numero de Equipo (Tag)": "P-101",
                    "assigned_date": "2024-03-05T00:00:00.000Z",
                    "Ejecutado por": "Otro",
                    "Otro - Ejecutado por": "Custom Name",
                    "latitude": "-33.4",
                },
            }
        ],
    }
    resp = client.post("/batch", json=payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["processed"] == 1
    assert body["errors"] == 0
    result = body["results"][0]
    assert result["action"] == "created"
    assert result["data"]["equipment_tag"] == "P-101"
    assert result["data"]["assigned_date"] == "2024-03-05T00:00:00+00:00"
    assert result["catalog"]["succeeded"] == 2
    assert {entry["name"] for _, entry in fake_catalog.created} == {"P-101", "Custom Name"}

    listing = client.get("/api/equipment").json()
    assert listing["total"] == 1
    assert listing["rows"][0]["latitude"] == -33.4


def test_legacy_path_updates_same_event(client) -> None:
    row = {"rowNumber": 1, "data": {"Tag": "X", "assigned_date": "2024-01-01"}}
    client.post("/batch", json={"rows": [row]})
    resp = client.post("/api/simple-batch", json={"rows": [row]})

    assert resp.json()["results"][0]["action"] == "updated"
    assert client.get("/api/equipment").json()["total"] == 1


@pytest.mark.parametrize("payload", [{"rows": "x"}, {"rows": []}, {"sheet": "s"}, [1, 2]])
def test_malformed_batch_is_400(client, payload) -> None:
    resp = client.post("/batch", json=payload)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert client.get("/api/equipment").json()["total"] == 0


def test_unreachable_store_is_500(client, settings, tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    broken = settings.__class__(
        catalog_base_url=settings.catalog_base_url,
        catalog_api_key="",
        database_url=f"sqlite:///{blocker / 'sub' / 'x.db'}",
    )
    app.dependency_overrides[get_settings] = lambda: broken

    resp = client.post("/batch", json={"rows": [{"rowNumber": 1, "data": {"Tag": "P"}}]})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Database connection failed"


def test_catalog_test_endpoint(client) -> None:
    resp = client.post(
        "/api/test-catalog",
        json={"testData": [{"Tipo de Equipo": "Otro", "Otro - Tipo de Equipo": "Agitador"}]},
    )
    assert resp.status_code == 200
    assert resp.json() == {"processed": 1, "successful": 1, "errors": []}

    assert client.post("/api/test-catalog", json={"testData": []}).status_code == 400


def test_invalid_json_body_is_400(client) -> None:
    resp = client.post("/batch", content=b"{not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid request")
    assert client.get("/api/equipment").json()["total"] == 0
