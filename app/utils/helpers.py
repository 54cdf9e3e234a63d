"""
Helper utilities for Deposit OCR.

Common functions used across domains.
"""

from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4


def generate_uuid() -> str:
    """Generate a unique identifier."""
    return str(uuid4())


def now_utc() -> datetime:
    """Get current timestamp as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except (FileNotFoundError, RuntimeError):
        return path.expanduser().absolute()


def relative_directory(path: Path, root: Path) -> Path:
    """
    Directory of ``path`` relative to ``root``.

    Args:
        path: File inside ``root``
        root: Base directory

    Returns:
        Relative parent directory (``Path('.')`` for files directly in root)

    Raises:
        ValueError: If ``path`` is not inside ``root``
    """
    return path.parent.relative_to(root)


def unique_path(path: Path) -> Path:
    """
    Return ``path`` or, if taken, the first free ``name (n).ext`` sibling.

    Broken symlinks count as taken.
    """
    if not path.exists() and not path.is_symlink():
        return path

    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem} ({counter}){path.suffix}")
        if not candidate.exists() and not candidate.is_symlink():
            return candidate
        counter += 1
