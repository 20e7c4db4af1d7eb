# mediagate/utils/staged_files.py
"""
Staged File Tracking

Every local file an ingest request produces (the received file, its renamed
form, derived variants) is registered here before it is written, so the
error path can delete exactly those paths.
"""

from pathlib import Path
from typing import Iterator, List, Union

from ..enums import LoggerName
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.INGEST_PIPELINE)

PathLike = Union[str, Path]


def delete_if_exists(path: PathLike) -> bool:
    """
    Delete a file, tolerating its absence.

    Returns:
        True if a file was deleted
    """
    file_path = Path(path)
    try:
        file_path.unlink()
        return True
    except FileNotFoundError:
        return False


class StagedFiles:
    """Ordered set of local paths owned by one ingest request"""

    def __init__(self) -> None:
        self._paths: List[Path] = []

    def track(self, path: PathLike) -> Path:
        """Register a path (idempotent) and return it as a Path"""
        file_path = Path(path)
        if file_path not in self._paths:
            self._paths.append(file_path)
        return file_path

    def rename(self, source: PathLike, destination: PathLike) -> Path:
        """
        Rename a tracked file on disk, tracking the new path.

        The destination is tracked before the rename so a failure between the
        two steps still leaves both names covered.
        """
        source_path = Path(source)
        destination_path = self.track(destination)
        source_path.rename(destination_path)
        if source_path in self._paths:
            self._paths.remove(source_path)
        return destination_path

    def release(self) -> List[Path]:
        """Hand ownership to the caller (uploader or async job) and stop tracking"""
        paths, self._paths = self._paths, []
        return paths

    def cleanup(self) -> int:
        """
        Delete every tracked path.

        Returns:
            Number of files actually removed
        """
        removed = 0
        for path in self.release():
            try:
                if delete_if_exists(path):
                    removed += 1
            except OSError as e:
                logger.warning(f"Failed to remove staged file {path}: {e}")
        if removed:
            logger.debug(f"Removed {removed} staged file(s)")
        return removed

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    def __contains__(self, path: object) -> bool:
        return Path(path) in self._paths

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._paths))

    def __len__(self) -> int:
        return len(self._paths)
