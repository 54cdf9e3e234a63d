"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.dependencies import get_history_store, get_watcher
from app.utils.config import get_settings
from app.utils.history_store import HistoryStore
from domains.file_ingest.collectors.deposit_watcher import DepositWatcher, WatcherState

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    watcher_state: str
    files_in_progress: int
    history_entries: int
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    watcher: DepositWatcher = Depends(get_watcher),
    history: HistoryStore = Depends(get_history_store),
):
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Deposit watcher is armed
    """
    settings = get_settings()
    status = watcher.status()

    return HealthResponse(
        status="healthy" if watcher.state == WatcherState.ARMED else "idle",
        timestamp=datetime.now(),
        watcher_state=status.state,
        files_in_progress=status.in_flight,
        history_entries=len(history),
        version=settings.api_version
    )
