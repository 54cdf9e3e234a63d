"""
Pydantic models for Deposit OCR.

Shared data models across the application.
"""

import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _is_within(path: Path, other: Path) -> bool:
    """True if ``path`` equals ``other`` or lies beneath it."""
    return path == other or other in path.parents


# =====================================================
# Watch Configuration
# =====================================================

class WatchConfiguration(BaseModel):
    """
    Resolved snapshot of the deposit watcher settings.

    Immutable: a configuration change produces a new snapshot which fully
    replaces the watcher state.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    deposit_root: Path
    export_root: Path
    trash_root: Path
    use_system_trash: bool = False

    @field_validator("deposit_root", "export_root", "trash_root")
    @classmethod
    def validate_absolute(cls, v: Path) -> Path:
        """Ensure all roots are absolute."""
        if not v.is_absolute():
            raise ValueError(f"Path must be absolute: {v}")
        return v

    @model_validator(mode="after")
    def validate_disjoint_outputs(self) -> "WatchConfiguration":
        """Export and trash roots must be distinct and not nested."""
        if self.export_root == self.trash_root:
            raise ValueError("Export and trash folders must differ")
        if _is_within(self.export_root, self.trash_root) or _is_within(
            self.trash_root, self.export_root
        ):
            raise ValueError("Export and trash folders must not contain each other")
        return self


# =====================================================
# Normalization / Extraction Models
# =====================================================

class ContentKind(str, Enum):
    """How the extraction service receives a file."""
    DOCUMENT = "document"
    IMAGE = "image"


class NormalizedInput(BaseModel):
    """Request-ready representation of a deposited file."""
    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    mime_type: str
    path: Path
    is_temporary: bool = False  # converted copy, deleted after use


class ExtractionResult(BaseModel):
    """Text returned by the extraction service for one file."""
    text: str
    output_file: Optional[Path] = None
    page_count: int = Field(default=0, ge=0)


# =====================================================
# History Models
# =====================================================

class SourceReference(BaseModel):
    """
    Durable pointer back to a processed original.

    Survives relocation: besides the original location it records where the
    file was moved to, plus an optional link kept in the history directory.
    """
    model_config = ConfigDict(frozen=True)

    original_path: str
    relocated_path: Optional[str] = None
    link_path: Optional[str] = None

    def resolve(self) -> Optional[Path]:
        """Return the first candidate location that still exists."""
        candidates: List[Path] = []
        if self.link_path:
            link = Path(self.link_path)
            if link.is_symlink():
                candidates.append(Path(os.readlink(link)))
        if self.relocated_path:
            candidates.append(Path(self.relocated_path))
        candidates.append(Path(self.original_path))

        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None


class HistoryEntry(BaseModel):
    """One durable record of a completed extraction."""
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    display_title: str
    source_reference: SourceReference
    output_kind: str = "markdown"
    output_text: Optional[str] = None
    output_path: Optional[str] = None
    page_count: int = 0


class HistoryAction(str, Enum):
    """Kind of committed history mutation."""
    INSERTED = "inserted"
    DELETED = "deleted"
    WIPED = "wiped"


class HistoryChange(BaseModel):
    """Notification delivered to history observers after a commit."""
    action: HistoryAction
    entry_id: Optional[str] = None


# =====================================================
# Response Models
# =====================================================

class WatcherStatus(BaseModel):
    """Snapshot of the deposit watcher state."""
    state: str
    configuration: Optional[WatchConfiguration] = None
    tracked_files: int = 0
    in_flight: int = 0


class OperationStatus(BaseModel):
    """Generic operation status."""
    status: str
    message: str
    details: Optional[dict] = None
