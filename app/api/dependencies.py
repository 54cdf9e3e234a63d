"""
Request-scoped access to the objects owned by the application lifespan.
"""

from fastapi import Request

from app.utils.history_store import HistoryStore
from domains.file_ingest.collectors.deposit_watcher import DepositWatcher


def get_history_store(request: Request) -> HistoryStore:
    """History store created at startup."""
    return request.app.state.history


def get_watcher(request: Request) -> DepositWatcher:
    """Deposit watcher created at startup."""
    return request.app.state.watcher
