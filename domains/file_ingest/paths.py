"""
Path resolution for the deposit watcher.

Derives the effective export and trash directories from a deposit root and
optional overrides, creates them, and decides which directories the scanner
must skip because they hold the watcher's own output.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from app.models.schemas import WatchConfiguration
from app.utils.helpers import normalise_path
from domains.file_ingest.errors import ConfigurationError

DEFAULT_EXPORT_DIR_NAME = "Export"
DEFAULT_TRASH_DIR_NAME = "Trash"


def resolve_configuration(
    deposit_root: Path,
    export_override: Optional[Path] = None,
    trash_override: Optional[Path] = None,
    use_system_trash: bool = False,
) -> WatchConfiguration:
    """
    Build a watch configuration, applying default output locations.

    Args:
        deposit_root: Directory under observation
        export_override: Explicit export folder (default: <deposit>/Export)
        trash_override: Explicit trash folder (default: <deposit>/Trash)
        use_system_trash: Send originals to the platform trash

    Returns:
        Validated configuration snapshot

    Raises:
        ConfigurationError: If the folder combination is invalid
    """
    deposit = normalise_path(Path(deposit_root))
    export = normalise_path(Path(export_override)) if export_override else deposit / DEFAULT_EXPORT_DIR_NAME
    trash = normalise_path(Path(trash_override)) if trash_override else deposit / DEFAULT_TRASH_DIR_NAME

    try:
        return WatchConfiguration(
            deposit_root=deposit,
            export_root=export,
            trash_root=trash,
            use_system_trash=use_system_trash,
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def ensure_directories(config: WatchConfiguration) -> List[ConfigurationError]:
    """
    Create the export folder, and the trash folder unless the system trash
    is used.

    Failures are logged and returned rather than raised: a later scan may
    succeed once the location becomes available.
    """
    required = [config.export_root]
    if not config.use_system_trash:
        required.append(config.trash_root)

    errors: List[ConfigurationError] = []
    for directory in required:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            error = ConfigurationError(f"Cannot create {directory}: {e}")
            logger.warning(str(error))
            errors.append(error)

    return errors


@dataclass(frozen=True)
class ExclusionRule:
    """
    Matches directory names that belong to the watcher's output areas.

    The names are derived from the configuration on every call, so a new
    configuration takes effect on the next scan.
    """

    config: WatchConfiguration

    def excluded_names(self) -> frozenset[str]:
        return frozenset({self.config.export_root.name, self.config.trash_root.name})

    def __call__(self, name: str) -> bool:
        return name in self.excluded_names()
