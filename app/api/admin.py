"""
Admin endpoints for watcher management.

Includes:
- Manual scan trigger
- Reconfiguration from current settings
- Watcher status and OCR model catalog
- Log export
"""

from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel

from app.api.dependencies import get_history_store, get_watcher
from app.models.schemas import OperationStatus, WatcherStatus
from app.utils.config import get_settings
from app.utils.extraction import get_extraction_client, reset_extraction_client
from app.utils.history_store import HistoryStore
from app.utils.log_setup import export_log
from domains.file_ingest.collectors.deposit_watcher import DepositWatcher, WatcherState
from domains.file_ingest.errors import ExtractionError
from domains.file_ingest.processors.file_processor import FileProcessor

router = APIRouter()


class ScanResponse(BaseModel):
    """Scan operation response."""
    status: str
    message: str
    dispatched: List[str] = []


class ModelsResponse(BaseModel):
    """Available OCR models."""
    models: List[str]
    selected: str
    api_key_valid: Optional[bool] = None  # None when no key is configured
    message: Optional[str] = None


@router.post("/scan", response_model=ScanResponse)
async def trigger_scan(watcher: DepositWatcher = Depends(get_watcher)):
    """
    Scan the deposit folder now instead of waiting for the next tick.

    Returns:
        Files dispatched for processing
    """
    if watcher.state == WatcherState.DISABLED:
        return ScanResponse(status="disabled", message="No deposit folder configured")

    logger.info("Manual deposit scan triggered")
    dispatched = watcher.tick()

    return ScanResponse(
        status="queued",
        message=f"{len(dispatched)} file(s) dispatched",
        dispatched=[str(p) for p in dispatched],
    )


@router.post("/reconfigure", response_model=WatcherStatus)
async def reconfigure_watcher(
    watcher: DepositWatcher = Depends(get_watcher),
    history: HistoryStore = Depends(get_history_store),
):
    """
    Reload settings and apply them to the watcher.

    Rebuilds the extraction client and file processor, so API key, model,
    timeout and trash settings take effect too. Clears the dedup state, so
    files still present in the deposit folder become eligible again.
    """
    get_settings.cache_clear()
    reset_extraction_client()
    watcher.processor = FileProcessor(get_extraction_client(), history)

    config = get_settings().watch_configuration()
    logger.info("Reconfiguring deposit watcher from settings")
    watcher.on_configuration_changed(config)
    return watcher.status()


@router.get("/status", response_model=WatcherStatus)
async def get_watcher_status(watcher: DepositWatcher = Depends(get_watcher)):
    """Current watcher state and counters."""
    return watcher.status()


@router.get("/models", response_model=ModelsResponse)
async def list_models():
    """
    OCR models offered by the extraction service.

    Also validates the configured API key: ``api_key_valid`` is False when
    the catalog call fails (rejected key or unreachable service).
    """
    settings = get_settings()
    if not settings.mistral_api_key:
        return ModelsResponse(
            models=await get_extraction_client().list_models(),
            selected=settings.ocr_model,
            message="No API key configured",
        )

    try:
        models = await get_extraction_client().list_models()
    except ExtractionError as e:
        logger.warning(f"Model catalog lookup failed: {e}")
        return ModelsResponse(
            models=[settings.ocr_model],
            selected=settings.ocr_model,
            api_key_valid=False,
            message=str(e),
        )

    return ModelsResponse(models=models, selected=settings.ocr_model, api_key_valid=True)


@router.post("/export-log", response_model=OperationStatus)
async def export_current_log(destination: Optional[str] = None):
    """
    Copy the current log file for diagnostics.

    Args:
        destination: Target folder (default: ~/Downloads)
    """
    target_dir = Path(destination).expanduser() if destination else Path.home() / "Downloads"
    exported = export_log(target_dir)

    if exported is None:
        return OperationStatus(status="unavailable", message="No log file to export")

    return OperationStatus(
        status="exported",
        message=f"Log exported to {exported}",
        details={"path": str(exported)},
    )
