"""
Deposit folder scanner.

One recursive, exclusion-aware traversal of the deposit tree that returns
the files not yet dispatched, recording them in the dedup tracker as it
goes.
"""

import os
from pathlib import Path
from typing import Callable, List

from loguru import logger

from domains.file_ingest.collectors.dedup import DedupTracker


class ScanEngine:
    """
    Filesystem scanner for the deposit watcher.

    Skips hidden entries and symlinks, and prunes directories whose name
    matches the exclusion rule so the watcher never walks its own output.
    """

    def __init__(self, skip_hidden: bool = True):
        """
        Initialize scan engine.

        Args:
            skip_hidden: Skip files/dirs starting with '.' (default: True)
        """
        self.skip_hidden = skip_hidden

    def scan(
        self,
        root: Path,
        is_excluded: Callable[[str], bool],
        tracker: DedupTracker,
    ) -> List[Path]:
        """
        Collect files under ``root`` that have not been dispatched yet.

        Every returned path has already been inserted into ``tracker``, so
        the same path is never returned twice within one configuration
        lifetime.

        Args:
            root: Deposit root
            is_excluded: Predicate on a directory's last path component
            tracker: Dedup set for the active configuration

        Returns:
            Newly discovered files, in no particular order
        """
        if not root.is_dir():
            logger.warning(f"Deposit folder is not accessible: {root}")
            return []

        discovered: List[Path] = []
        self._scan_directory(root, is_excluded, tracker, discovered)

        if discovered:
            logger.info(f"Scan of {root} found {len(discovered)} new file(s)")
        return discovered

    def _scan_directory(
        self,
        directory: Path,
        is_excluded: Callable[[str], bool],
        tracker: DedupTracker,
        discovered: List[Path],
    ) -> None:
        """Depth-first walk of one directory."""
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            # Directory vanished or became unreadable during the scan
            logger.debug(f"Skipping unreadable directory {directory}: {e}")
            return

        parent_excluded = is_excluded(directory.name)

        for entry in entries:
            if self.skip_hidden and entry.name.startswith("."):
                continue

            try:
                if entry.is_symlink():
                    continue
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file(follow_symlinks=False)
            except OSError as e:
                logger.debug(f"Skipping entry {entry.path}: {e}")
                continue

            if is_dir:
                if is_excluded(entry.name):
                    continue
                self._scan_directory(Path(entry.path), is_excluded, tracker, discovered)
                continue

            if not is_file or parent_excluded:
                continue

            path = Path(entry.path)
            if tracker.mark(path):
                discovered.append(path)
