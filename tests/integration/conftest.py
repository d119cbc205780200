import pytest
from fastapi.testclient import TestClient
from fridgewatch.main import create_app


@pytest.fixture
def client(tmp_path, monkeypatch) -> TestClient:
    # isolate data dir for this test run
    d = tmp_path / "data"
    d.mkdir()
    monkeypatch.setenv("DATA_DIR", str(d))
    monkeypatch.setenv("INVENTORY_FILE", str(d / "inventory.json"))
    monkeypatch.setenv("EVENTS_FILE", str(d / "inventory_log.jsonl"))
    monkeypatch.setenv("NOTIFICATIONS_FILE", str(d / "notifications.json"))
    monkeypatch.delenv("TIMEZONE", raising=False)
    return TestClient(create_app())
