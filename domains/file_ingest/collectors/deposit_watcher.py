"""
Deposit watcher for the File Ingestion domain.

Polls the deposit folder on a fixed interval and hands every newly
discovered file to the file processor as an independent asyncio task.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Protocol, Set

from loguru import logger

from app.models.schemas import WatchConfiguration, WatcherStatus
from app.utils.config import get_settings
from domains.file_ingest.collectors.dedup import DedupTracker
from domains.file_ingest.collectors.scanner import ScanEngine
from domains.file_ingest.paths import ExclusionRule, ensure_directories


class WatcherState(str, Enum):
    """Lifecycle of the deposit watcher."""
    DISABLED = "disabled"
    ARMED = "armed"


class DepositFileHandler(Protocol):
    """Anything that can process one deposited file."""

    async def process(self, path: Path, config: WatchConfiguration) -> Any:
        ...


class DepositWatcher:
    """
    Scheduler for unattended deposit ingestion.

    Owns the poll timer and the dedup tracker. Scans run synchronously on
    the event loop (inside the timer coroutine or ``reconfigure``), so the
    tracker is only ever touched from one logical thread and two scans can
    never dispatch the same path. Processing tasks run concurrently with each
    other and with later scans, bounded by a semaphore.

    All methods must be called from the event loop thread.
    """

    def __init__(
        self,
        processor: DepositFileHandler,
        interval: Optional[float] = None,
        max_concurrent: Optional[int] = None,
        scanner: Optional[ScanEngine] = None,
    ):
        """
        Initialize deposit watcher.

        Args:
            processor: Handler invoked once per discovered file
            interval: Seconds between scans (default: from settings)
            max_concurrent: Files processed at the same time (default: from settings)
            scanner: Scan engine (default: ScanEngine())
        """
        settings = get_settings()
        self.processor = processor
        self.interval = interval or settings.scan_interval
        self.max_concurrent = max_concurrent or settings.max_concurrent_files
        self.scanner = scanner or ScanEngine()
        self.tracker = DedupTracker()

        self._config: Optional[WatchConfiguration] = None
        self._timer: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

    # Control ---------------------------------------------------------------------

    @property
    def state(self) -> WatcherState:
        return WatcherState.ARMED if self._config is not None else WatcherState.DISABLED

    @property
    def configuration(self) -> Optional[WatchConfiguration]:
        return self._config

    def reconfigure(self, config: Optional[WatchConfiguration]) -> None:
        """
        Replace the watcher configuration.

        Cancels the running timer and clears the dedup tracker. With a
        configuration, creates the output folders, scans once immediately
        and arms a new timer; with None, leaves the watcher disabled.
        Calling it again with the same configuration is harmless.
        """
        self._cancel_timer()
        self.tracker.clear()
        self._config = config

        if config is None:
            logger.info("Deposit watcher disabled")
            return

        ensure_directories(config)

        logger.info(f"Watching deposit folder: {config.deposit_root}")
        logger.info(f"Export folder: {config.export_root}")
        if config.use_system_trash:
            logger.info("Originals go to the system trash")
        else:
            logger.info(f"Trash folder: {config.trash_root}")

        self.tick()
        self._timer = asyncio.get_running_loop().create_task(
            self._run_timer(), name="deposit-watcher-timer"
        )

    def on_configuration_changed(self, config: Optional[WatchConfiguration]) -> None:
        """Entry point for the configuration layer."""
        self.reconfigure(config)

    async def drain(self) -> None:
        """Wait until every dispatched processing task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Disable the watcher and wait for in-flight files."""
        self.reconfigure(None)
        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} file(s) in progress...")
        await self.drain()
        logger.info("Deposit watcher stopped")

    def status(self) -> WatcherStatus:
        return WatcherStatus(
            state=self.state.value,
            configuration=self._config,
            tracked_files=len(self.tracker),
            in_flight=len(self._in_flight),
        )

    # Scheduling ------------------------------------------------------------------

    def tick(self) -> List[Path]:
        """
        Scan once and dispatch every newly discovered file.

        Does not wait for processing to finish.

        Returns:
            Paths dispatched by this tick
        """
        config = self._config
        if config is None:
            return []

        discovered = self.scanner.scan(config.deposit_root, ExclusionRule(config), self.tracker)

        dispatched: List[Path] = []
        for path in discovered:
            if str(path) in self._in_flight:
                # Still being processed from before the last reconfigure
                logger.debug(f"Skipping file already in progress: {path}")
                continue
            self._dispatch(path, config)
            dispatched.append(path)

        return dispatched

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Deposit scan failed: {e}")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _dispatch(self, path: Path, config: WatchConfiguration) -> None:
        self._in_flight.add(str(path))
        task = asyncio.get_running_loop().create_task(
            self._process(path, config), name=f"deposit:{path.name}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _process(self, path: Path, config: WatchConfiguration) -> None:
        try:
            async with self._semaphore:
                await self.processor.process(path, config)
        except Exception as e:
            logger.error(f"Processing task for {path} failed: {e}")
        finally:
            self._in_flight.discard(str(path))
