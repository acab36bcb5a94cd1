from __future__ import annotations

import asyncio
import time

import pytest
from fastapi.testclient import TestClient

import latency_console.main as main
from latency_console.core.config import settings
from latency_console.storage.sqlite_repo import SQLiteRepository


@pytest.fixture()
def app_repo(tmp_path, monkeypatch) -> SQLiteRepository:
    repo = SQLiteRepository(str(tmp_path / "main.db"))
    monkeypatch.setattr(main, "repo", repo)
    monkeypatch.setattr(settings, "device_mode", "sim")
    monkeypatch.setattr(settings, "record_measurements", True)
    monkeypatch.setattr(settings, "log_file", str(tmp_path / "console.log"))
    return repo


def test_simulated_measurement_end_to_end(app_repo) -> None:
    with TestClient(main.app) as client:
        live = client.get("/api/live").json()
        assert live["device_mode"] == "sim"
        assert live["transport_open"] is True

        scenario = client.get("/api/measure/presets").json()["doom"]
        assert client.post("/api/measure", json={"scenario": scenario}).json() == {"ok": True}

        deadline = time.monotonic() + 5.0
        body = client.get("/api/measure").json()
        while not body["visible"] and time.monotonic() < deadline:
            time.sleep(0.05)
            body = client.get("/api/measure").json()

        assert body["visible"] is True
        assert body["current"]["x_max_ms"] == 300.0
        assert len(body["current"]["series"]) == 301

    rows = asyncio.run(app_repo.query_measurements(limit=10))
    assert len(rows) == 1
    assert rows[0].n_samples == 301


def test_run_serves_app_with_configured_address(monkeypatch) -> None:
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(settings, "port", 9123)

    main.run()

    assert calls == [("latency_console.main:app", {"host": settings.host, "port": 9123})]
