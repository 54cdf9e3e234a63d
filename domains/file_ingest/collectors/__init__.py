"""
File Ingestion Collectors

Long-running pieces that discover deposited files:
- dedup.py - In-memory set of already dispatched paths
- scanner.py - Exclusion-aware recursive traversal of the deposit folder
- deposit_watcher.py - Poll timer and per-file task dispatch
"""

from domains.file_ingest.collectors.dedup import DedupTracker
from domains.file_ingest.collectors.deposit_watcher import DepositWatcher, WatcherState
from domains.file_ingest.collectors.scanner import ScanEngine

__all__ = ["DedupTracker", "DepositWatcher", "ScanEngine", "WatcherState"]
