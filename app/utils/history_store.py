"""Durable, ordered record of processed deposit documents."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from app.models.schemas import HistoryAction, HistoryChange, HistoryEntry
from domains.file_ingest.errors import WriteError

HISTORY_FILE_NAME = "history.json"
SOURCES_DIR_NAME = "sources"

HistoryObserver = Callable[[HistoryChange], None]

_entries_adapter = TypeAdapter(List[HistoryEntry])


class HistoryStore:
    """
    Newest-first log of history entries persisted as a single JSON document.

    Entries are kept in insertion order (the order processing finished), not
    sorted by timestamp. Every mutation updates memory, rewrites the file and
    notifies observers while holding one lock, so concurrent pipelines cannot
    interleave or lose updates. Reads return copies of the current list.
    """

    def __init__(self, directory: Path):
        """
        Initialize store and load any existing history.

        Args:
            directory: Folder holding ``history.json`` and source links
        """
        self.directory = directory
        self.store_path = directory / HISTORY_FILE_NAME
        self.sources_dir = directory / SOURCES_DIR_NAME
        self._lock = threading.RLock()
        self._entries: List[HistoryEntry] = []
        self._observers: List[HistoryObserver] = []

        self.directory.mkdir(parents=True, exist_ok=True)
        self._load()

    # Mutations -----------------------------------------------------------------

    def insert(self, entry: HistoryEntry) -> None:
        """Add ``entry`` as the most recent item, persist and notify."""
        with self._lock:
            self._entries.insert(0, entry)
            self._commit(HistoryChange(action=HistoryAction.INSERTED, entry_id=entry.id))

    def delete(self, entry_id: str) -> bool:
        """
        Remove one entry.

        Returns:
            True if an entry was removed; unknown ids are a no-op
        """
        with self._lock:
            removed = [e for e in self._entries if e.id == entry_id]
            if not removed:
                return False
            self._entries = [e for e in self._entries if e.id != entry_id]
            for entry in removed:
                self._remove_source_link(entry)
            self._commit(HistoryChange(action=HistoryAction.DELETED, entry_id=entry_id))
            return True

    def wipe_all(self) -> None:
        """Remove every entry, persist and notify."""
        with self._lock:
            for entry in self._entries:
                self._remove_source_link(entry)
            self._entries = []
            self._commit(HistoryChange(action=HistoryAction.WIPED))

    # Reads ---------------------------------------------------------------------

    def fetch_all(self) -> List[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def fetch_last(self, limit: int) -> List[HistoryEntry]:
        with self._lock:
            return self._entries[:max(limit, 0)]

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        with self._lock:
            return next((e for e in self._entries if e.id == entry_id), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # Observers -----------------------------------------------------------------

    def subscribe(self, observer: HistoryObserver) -> Callable[[], None]:
        """
        Register ``observer`` for change notifications.

        Returns:
            Callable that removes the observer
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    # Source links --------------------------------------------------------------

    def create_source_link(self, entry_id: str, target: Path) -> Optional[Path]:
        """
        Create ``sources/<entry_id>`` pointing at ``target``.

        Returns:
            The link path, or None if the link could not be created
        """
        link = self.sources_dir / entry_id
        try:
            self.sources_dir.mkdir(parents=True, exist_ok=True)
            link.symlink_to(target)
        except OSError as e:
            logger.debug(f"Could not link history source {target}: {e}")
            return None
        return link

    # Persistence ---------------------------------------------------------------

    def _commit(self, change: HistoryChange) -> None:
        try:
            self._save()
        except WriteError as e:
            # In-memory state stays authoritative; the next commit rewrites it
            logger.error(str(e))

        for observer in list(self._observers):
            try:
                observer(change)
            except Exception as e:
                logger.warning(f"History observer failed on {change.action.value}: {e}")

    def _save(self) -> None:
        """Persist the full collection via a temporary file and atomic replace."""
        tmp_path = self.store_path.with_name(self.store_path.name + ".tmp")
        try:
            tmp_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(_entries_adapter.dump_json(self._entries, indent=2))
            tmp_path.replace(self.store_path)
        except OSError as e:
            raise WriteError(f"Failed to persist history to {self.store_path}: {e}") from e

    def _load(self) -> None:
        if not self.store_path.exists():
            return

        try:
            self._entries = _entries_adapter.validate_json(self.store_path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable history file {self.store_path}: {e}")
            self._entries = []
            return

        logger.info(f"Loaded {len(self._entries)} history entries from {self.store_path}")

    def _remove_source_link(self, entry: HistoryEntry) -> None:
        link_path = entry.source_reference.link_path
        if not link_path:
            return
        link = Path(link_path)
        try:
            if link.is_symlink():
                link.unlink()
        except OSError as e:
            logger.debug(f"Could not remove source link {link}: {e}")
