"""
Service-level tests for the HTTP surface.

The application starts through its real lifespan (settings, logging,
history store, watcher) against temporary folders; only the OCR service is
absent, so deposited files stay where they are.
"""

from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.schemas import HistoryEntry, SourceReference
from app.utils.config import get_settings
from app.utils.extraction import ExtractionClient

pytestmark = pytest.mark.service


@pytest.fixture
def api_env(monkeypatch):
    monkeypatch.setenv("SCAN_INTERVAL", "3600")
    get_settings.cache_clear()


@pytest.fixture
def client(api_env):
    with TestClient(app) as test_client:
        yield test_client


def make_entry(entry_id, original_path="/deposit/doc.pdf"):
    return HistoryEntry(
        id=entry_id,
        created_at=datetime.now(timezone.utc),
        display_title=f"{entry_id}.pdf",
        source_reference=SourceReference(original_path=original_path),
        output_text=f"# {entry_id}",
        page_count=1,
    )


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "Deposit OCR"


def test_health_without_deposit_folder(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "idle"
    assert data["watcher_state"] == "disabled"
    assert data["history_entries"] == 0


def test_health_with_deposit_folder(monkeypatch, api_env, deposit):
    monkeypatch.setenv("DEPOSIT_FOLDER", str(deposit))
    get_settings.cache_clear()

    with TestClient(app) as client:
        data = client.get("/health").json()

    assert data["status"] == "healthy"
    assert data["watcher_state"] == "armed"
    assert (deposit / "Export").is_dir()
    assert (deposit / "Trash").is_dir()


def test_history_listing_newest_first(client):
    store = app.state.history
    store.insert(make_entry("older"))
    store.insert(make_entry("newer"))

    everything = client.get("/history/").json()
    latest = client.get("/history/", params={"limit": 1}).json()

    assert [e["id"] for e in everything] == ["newer", "older"]
    assert [e["id"] for e in latest] == ["newer"]
    assert client.get("/history/", params={"limit": 0}).status_code == 422


def test_history_entry_lookup(client):
    app.state.history.insert(make_entry("abc"))

    found = client.get("/history/abc")
    missing = client.get("/history/nope")

    assert found.status_code == 200
    assert found.json()["output_text"] == "# abc"
    assert missing.status_code == 404


def test_history_source_location(client, tmp_path):
    original = tmp_path / "doc.pdf"
    original.write_text("pdf")
    app.state.history.insert(make_entry("abc", original_path=str(original)))

    data = client.get("/history/abc/source").json()

    assert data["original_path"] == str(original)
    assert data["resolved_path"] == str(original)


def test_delete_history_entry(client):
    app.state.history.insert(make_entry("abc"))

    deleted = client.delete("/history/abc").json()
    again = client.delete("/history/abc").json()

    assert deleted["status"] == "deleted"
    assert again["status"] == "not_found"
    assert client.get("/history/").json() == []


def test_wipe_history(client):
    app.state.history.insert(make_entry("a"))
    app.state.history.insert(make_entry("b"))

    data = client.delete("/history/").json()

    assert data["status"] == "wiped"
    assert data["details"]["deleted_count"] == 2
    assert client.get("/history/").json() == []


def test_manual_scan_when_disabled(client):
    data = client.post("/admin/scan").json()

    assert data["status"] == "disabled"
    assert data["dispatched"] == []


def test_reconfigure_from_settings_then_scan(client, monkeypatch, deposit):
    monkeypatch.setenv("DEPOSIT_FOLDER", str(deposit))

    status = client.post("/admin/reconfigure").json()

    assert status["state"] == "armed"
    assert status["configuration"]["deposit_root"] == str(deposit)

    (deposit / "new.pdf").write_bytes(b"%PDF")
    scan = client.post("/admin/scan").json()

    assert scan["status"] == "queued"
    assert scan["dispatched"] == [str(deposit / "new.pdf")]


def test_watcher_status(client):
    data = client.get("/admin/status").json()

    assert data["state"] == "disabled"
    assert data["in_flight"] == 0


def test_models_without_api_key(client):
    data = client.get("/admin/models").json()

    assert data["models"] == ["mistral-ocr-latest"]
    assert data["selected"] == "mistral-ocr-latest"
    assert data["api_key_valid"] is None


def test_export_log(client, tmp_path):
    destination = tmp_path / "exported"

    data = client.post("/admin/export-log", params={"destination": str(destination)}).json()

    assert data["status"] == "exported"
    assert len(list(destination.iterdir())) == 1


def _catalog_client(status_code, body):
    def handler(request):
        return httpx.Response(status_code, json=body)

    return ExtractionClient(
        api_key="configured-key",
        base_url="https://ocr.test/v1",
        transport=httpx.MockTransport(handler),
    )


def test_models_with_rejected_api_key(monkeypatch, api_env):
    monkeypatch.setenv("MISTRAL_API_KEY", "configured-key")
    get_settings.cache_clear()
    monkeypatch.setattr(
        "app.utils.extraction._extraction_client",
        _catalog_client(401, {"message": "Unauthorized"}),
    )

    with TestClient(app) as client:
        data = client.get("/admin/models").json()

    assert data["api_key_valid"] is False
    assert "Unauthorized" in data["message"]
    assert data["models"] == ["mistral-ocr-latest"]


def test_models_with_accepted_api_key(monkeypatch, api_env):
    monkeypatch.setenv("MISTRAL_API_KEY", "configured-key")
    get_settings.cache_clear()
    monkeypatch.setattr(
        "app.utils.extraction._extraction_client",
        _catalog_client(200, {"data": [{"id": "mistral-ocr-2505"}]}),
    )

    with TestClient(app) as client:
        data = client.get("/admin/models").json()

    assert data["api_key_valid"] is True
    assert data["models"] == ["mistral-ocr-latest", "mistral-ocr-2505"]


def test_reconfigure_applies_new_extraction_settings(client, monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "rotated-key")
    monkeypatch.setenv("OCR_MODEL", "mistral-ocr-2505")

    client.post("/admin/reconfigure")

    processor = app.state.watcher.processor
    assert processor.model == "mistral-ocr-2505"
    assert processor.client.api_key == "rotated-key"
