"""
Relocation of processed originals.

Moves a processed file out of the deposit tree, either into the platform
trash or into a custom trash folder that mirrors the deposit layout, and
leaves recovery aliases in the export tree.
"""

import os
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from loguru import logger

from app.utils.helpers import unique_path
from domains.file_ingest.errors import AliasError, RelocationError


class SystemTrash:
    """
    Platform trash facility.

    Linux and BSD follow the FreeDesktop trash layout (``files/`` plus a
    ``.trashinfo`` record in ``info/``); macOS uses ``~/.Trash``. The trash
    home can be overridden, which tests rely on.
    """

    def __init__(self, trash_dir: Optional[Path] = None, platform: Optional[str] = None):
        """
        Initialize trash facility.

        Args:
            trash_dir: Trash home override
            platform: Platform name (default: ``sys.platform``)
        """
        self.trash_dir = trash_dir
        self.platform = platform or sys.platform

    @property
    def uses_freedesktop_layout(self) -> bool:
        return self.platform != "darwin"

    def home(self) -> Path:
        """Directory that receives trashed files."""
        if self.trash_dir is not None:
            return self.trash_dir
        if self.platform == "darwin":
            return Path.home() / ".Trash"
        data_home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
        return Path(data_home) / "Trash"

    def trash(self, path: Path) -> Path:
        """
        Move ``path`` to the trash.

        Returns:
            Location of the file inside the trash

        Raises:
            RelocationError: If the platform has no supported trash or the
                move fails
        """
        if self.platform.startswith("win"):
            raise RelocationError("System trash is not supported on Windows")

        try:
            if self.uses_freedesktop_layout:
                return self._trash_freedesktop(path)
            home = self.home()
            home.mkdir(parents=True, exist_ok=True)
            destination = unique_path(home / path.name)
            shutil.move(str(path), str(destination))
            return destination
        except (OSError, shutil.Error) as e:
            raise RelocationError(f"Failed to move {path} to system trash: {e}") from e

    def _trash_freedesktop(self, path: Path) -> Path:
        files_dir = self.home() / "files"
        info_dir = self.home() / "info"
        files_dir.mkdir(parents=True, exist_ok=True)
        info_dir.mkdir(parents=True, exist_ok=True)

        # The info file reserves the name; a name is taken if either the info
        # record or the trashed file (possibly orphaned) exists
        destination = files_dir / path.name
        counter = 0
        while True:
            info_path = info_dir / f"{destination.name}.trashinfo"
            if not destination.exists() and not destination.is_symlink():
                try:
                    with open(info_path, "x", encoding="utf-8") as handle:
                        handle.write(_trashinfo(path))
                    break
                except FileExistsError:
                    pass
            counter += 1
            destination = files_dir / f"{path.stem} ({counter}){path.suffix}"

        try:
            shutil.move(str(path), str(destination))
        except (OSError, shutil.Error):
            info_path.unlink(missing_ok=True)
            raise

        return destination


def _trashinfo(original: Path) -> str:
    deleted_at = datetime.now().strftime("%Y-%m-%dT%H:%M:%S")
    return (
        "[Trash Info]\n"
        f"Path={quote(str(original))}\n"
        f"DeletionDate={deleted_at}\n"
    )


def move_to_trash_root(path: Path, relative_dir: Path, trash_root: Path) -> Path:
    """
    Move ``path`` to ``<trash_root>/<relative_dir>/<name>``.

    An existing file at the destination is never overwritten; the moved file
    gets a numbered name instead.

    Returns:
        New location of the file

    Raises:
        RelocationError: If the directory cannot be created or the move fails
    """
    destination_dir = trash_root / relative_dir
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
        destination = unique_path(destination_dir / path.name)
        shutil.move(str(path), str(destination))
    except (OSError, shutil.Error) as e:
        raise RelocationError(f"Failed to move {path} to deposit trash: {e}") from e

    logger.debug(f"Moved {path} -> {destination}")
    return destination


def create_recovery_alias(alias_path: Path, target: Path) -> Path:
    """
    Create a symbolic link at ``alias_path`` pointing to ``target``.

    A stale alias left by an earlier run is replaced; any other existing
    file is left untouched.

    Raises:
        AliasError: If the link cannot be created
    """
    try:
        if alias_path.is_symlink():
            alias_path.unlink()
        elif alias_path.exists():
            raise AliasError(f"Alias location is occupied: {alias_path}")
        alias_path.symlink_to(target)
    except OSError as e:
        raise AliasError(f"Failed to create alias for {target}: {e}") from e

    return alias_path
