"""
Logging configuration for Deposit OCR.

Console output uses the service format; every launch also writes a
dedicated log file so unattended runs can be diagnosed afterwards.
"""

import shutil
import sys
import time
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "[{time:YYYY-MM-DDTHH:mm:ssZ}] [{level}] {message}"

_log_file: Optional[Path] = None


def configure_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Replace loguru sinks with console and (optionally) file output.

    Args:
        level: Minimum level for both sinks
        log_dir: Folder for the per-launch log file; None disables it

    Returns:
        Path of the log file, if one was created
    """
    global _log_file

    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level)

    _log_file = None
    if log_dir is None:
        return None

    stamp = time.strftime("%Y-%m-%dT%H-%M-%S")
    log_file = log_dir / f"deposit-ocr-{stamp}.log"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, format=FILE_FORMAT, level=level)
    except OSError as e:
        logger.warning(f"File logging disabled, cannot write to {log_dir}: {e}")
        return None

    _log_file = log_file
    return log_file


def export_log(destination_dir: Path) -> Optional[Path]:
    """
    Copy the current log file into ``destination_dir``.

    Returns:
        Path of the copy, or None when there is no log file or copying failed
    """
    if _log_file is None or not _log_file.exists():
        return None

    destination = destination_dir / f"deposit-ocr-{int(time.time())}.log"
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(_log_file, destination)
    except OSError as e:
        logger.error(f"Failed to export log to {destination_dir}: {e}")
        return None
    return destination
