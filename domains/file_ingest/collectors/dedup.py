"""In-memory record of deposit files already dispatched for processing."""

from pathlib import Path
from typing import Iterator, Set, Union

PathLike = Union[str, Path]


class DedupTracker:
    """
    Set of absolute file paths seen during the current configuration lifetime.

    Only the scanning side of the watcher mutates it, always from the same
    logical thread, so no locking is needed. Cleared when the watch
    configuration changes; never persisted.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def mark(self, path: PathLike) -> bool:
        """
        Record ``path`` as dispatched.

        Returns:
            True if the path was new (caller should dispatch it), False if it
            had already been recorded
        """
        key = str(path)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def clear(self) -> None:
        self._seen.clear()

    def __contains__(self, path: object) -> bool:
        return str(path) in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._seen))
