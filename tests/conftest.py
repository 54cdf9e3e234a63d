import asyncio
from pathlib import Path

import pytest

from app.models.schemas import ExtractionResult
from app.utils.config import get_settings
from app.utils.extraction import reset_extraction_client
from app.utils.history_store import HistoryStore
from domains.file_ingest.errors import ExtractionError
from domains.file_ingest.paths import resolve_configuration


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every setting that touches the disk at the test directory."""
    for name in (
        "DEPOSIT_FOLDER",
        "DEPOSIT_EXPORT_FOLDER",
        "DEPOSIT_TRASH_FOLDER",
        "USE_SYSTEM_TRASH",
        "MISTRAL_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HISTORY_DIR", str(tmp_path / "state" / "history"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "state" / "logs"))
    monkeypatch.setenv("SYSTEM_TRASH_DIR", str(tmp_path / "state" / "system-trash"))

    get_settings.cache_clear()
    reset_extraction_client()
    yield
    get_settings.cache_clear()
    reset_extraction_client()


@pytest.fixture
def deposit(tmp_path) -> Path:
    root = tmp_path / "deposit"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def config(deposit):
    return resolve_configuration(deposit)


@pytest.fixture
def history(tmp_path) -> HistoryStore:
    return HistoryStore(tmp_path / "state" / "history")


class FakeExtractionClient:
    """Stands in for the OCR service; fails for files containing b"FAIL"."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = []

    async def extract(
        self,
        content,
        content_kind,
        mime_type,
        model="mistral-ocr-latest",
        include_embedded_images=False,
    ):
        self.calls.append((content, content_kind, mime_type, model, include_embedded_images))
        if self.delay:
            await asyncio.sleep(self.delay)
        if b"FAIL" in content:
            raise ExtractionError("Service unavailable", status_code=503)
        return ExtractionResult(text=f"# OCR\n\n{content.decode(errors='replace')}", page_count=2)


@pytest.fixture
def fake_client() -> FakeExtractionClient:
    return FakeExtractionClient()
