from __future__ import annotations

from fastapi import FastAPI

from equipment_ingest.web_server import app as ingest_app

app = FastAPI(title="Equipment AppIngest")


@app.get("/healthz", include_in_schema=False)
def healthz() -> dict:
    return {"status": "ok", "service": "AppIngest"}


app.mount("/", ingest_app)
