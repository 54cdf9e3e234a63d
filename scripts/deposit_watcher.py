#!/usr/bin/env python3
"""Run the deposit watcher without the HTTP API.

Watches a deposit folder, sends every new file to the OCR service, writes
Markdown into the export tree and moves originals out of the way. Paths
given on the command line override the corresponding settings.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.utils.config import get_settings
from app.utils.extraction import ExtractionClient
from app.utils.history_store import HistoryStore
from app.utils.log_setup import configure_logging
from domains.file_ingest.collectors.deposit_watcher import DepositWatcher
from domains.file_ingest.errors import ConfigurationError
from domains.file_ingest.paths import resolve_configuration
from domains.file_ingest.processors.file_processor import FileProcessor


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch a deposit folder and OCR every file dropped into it.",
    )
    parser.add_argument(
        "--deposit",
        type=Path,
        default=None,
        help="Folder to watch (default: DEPOSIT_FOLDER setting).",
    )
    parser.add_argument(
        "--export",
        type=Path,
        default=None,
        help="Folder receiving Markdown output (default: <deposit>/Export).",
    )
    parser.add_argument(
        "--trash",
        type=Path,
        default=None,
        help="Folder receiving processed originals (default: <deposit>/Trash).",
    )
    parser.add_argument(
        "--system-trash",
        action="store_true",
        help="Send processed originals to the system trash instead.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between scans (default: SCAN_INTERVAL setting).",
    )
    parser.add_argument(
        "--history-dir",
        type=Path,
        default=None,
        help="Folder holding history.json (default: HISTORY_DIR setting).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL setting).",
    )

    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    """Start the watcher and block until a termination signal arrives."""

    settings = get_settings()

    deposit = args.deposit or settings.deposit_folder
    if deposit is None:
        logger.error("No deposit folder configured (use --deposit or DEPOSIT_FOLDER).")
        return 1

    try:
        config = resolve_configuration(
            deposit,
            export_override=args.export or settings.deposit_export_folder,
            trash_override=args.trash or settings.deposit_trash_folder,
            use_system_trash=args.system_trash or settings.use_system_trash,
        )
    except ConfigurationError as e:
        logger.error(f"Invalid deposit configuration: {e}")
        return 1

    history = HistoryStore(args.history_dir or settings.get_history_dir())
    processor = FileProcessor(ExtractionClient(), history)
    watcher = DepositWatcher(processor, interval=args.interval)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows
            signal.signal(signum, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    watcher.reconfigure(config)

    try:
        await stop_event.wait()
        logger.info("Received shutdown signal.")
    finally:
        await watcher.shutdown()

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, settings.get_log_dir())

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Deposit watcher stopped by user")
        return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
