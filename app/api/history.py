"""
History endpoints for the presentation layer.

Read access to processed documents, plus deletion of single entries or the
whole log.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from pydantic import BaseModel

from app.api.dependencies import get_history_store
from app.models.schemas import HistoryEntry, OperationStatus
from app.utils.history_store import HistoryStore

router = APIRouter()


class SourceLocation(BaseModel):
    """Where the original of a history entry currently lives."""
    entry_id: str
    original_path: str
    resolved_path: Optional[str] = None


@router.get("/", response_model=List[HistoryEntry])
async def list_history(
    limit: Optional[int] = Query(default=None, ge=1),
    history: HistoryStore = Depends(get_history_store),
):
    """
    List processed documents, most recent first.

    Args:
        limit: Return only the newest ``limit`` entries
    """
    if limit is None:
        return history.fetch_all()
    return history.fetch_last(limit)


@router.get("/{entry_id}", response_model=HistoryEntry)
async def get_history_entry(entry_id: str, history: HistoryStore = Depends(get_history_store)):
    """Get one history entry."""
    entry = history.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"History entry not found: {entry_id}")
    return entry


@router.get("/{entry_id}/source", response_model=SourceLocation)
async def locate_source(entry_id: str, history: HistoryStore = Depends(get_history_store)):
    """Resolve the current location of the entry's original file."""
    entry = history.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"History entry not found: {entry_id}")

    resolved = entry.source_reference.resolve()
    return SourceLocation(
        entry_id=entry.id,
        original_path=entry.source_reference.original_path,
        resolved_path=str(resolved) if resolved else None,
    )


@router.delete("/{entry_id}", response_model=OperationStatus)
async def delete_history_entry(entry_id: str, history: HistoryStore = Depends(get_history_store)):
    """
    Delete one history entry.

    Unknown ids are not an error.
    """
    removed = history.delete(entry_id)
    if removed:
        logger.info(f"History entry deleted: {entry_id}")
    return OperationStatus(
        status="deleted" if removed else "not_found",
        message=f"History entry {entry_id} {'deleted' if removed else 'did not exist'}",
    )


@router.delete("/", response_model=OperationStatus)
async def wipe_history(history: HistoryStore = Depends(get_history_store)):
    """Delete every history entry."""
    count = len(history)
    history.wipe_all()
    logger.info(f"History wiped ({count} entries)")
    return OperationStatus(
        status="wiped",
        message=f"Removed {count} history entries",
        details={"deleted_count": count},
    )
