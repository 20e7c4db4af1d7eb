# mediagate/workers/janitor_worker.py
"""
Janitor Worker.

Removes files from the staging directory that outlived the normal cleanup
path (crashed requests, jobs stuck in ``uploading``). Age is judged by
modification time; the sweep ignores job status.
"""

import time
from pathlib import Path
from typing import Optional

from ..config import settings
from ..enums import LoggerName, WorkerType
from ..utils.staged_files import delete_if_exists
from ..utils.time_utils import file_age_seconds
from .base_worker import BaseWorker
from .exceptions import WorkerInitializationError


class JanitorWorker(BaseWorker):
    def __init__(
        self,
        staging_dir: Optional[Path] = None,
        max_age_hours: Optional[int] = None,
    ):
        """
        Initialize janitor worker.

        Args:
            staging_dir: Directory to sweep; defaults to the staging directory
            max_age_hours: Files older than this are removed

        Raises:
            WorkerInitializationError: If max_age_hours is not positive
        """
        max_age = max_age_hours if max_age_hours is not None else settings.temp_file_max_age_hours
        if max_age <= 0:
            raise WorkerInitializationError("max_age_hours must be positive")

        super().__init__(WorkerType.JANITOR_WORKER, LoggerName.JANITOR_WORKER)
        self.staging_dir = Path(staging_dir) if staging_dir else settings.staging_path
        self.max_age_hours = max_age
        self.last_removed = 0

    async def initialize(self) -> None:
        self.log_info(
            f"Janitor watching {self.staging_dir} (max age {self.max_age_hours}h)"
        )

    async def cleanup(self) -> None:
        self.log_info("Janitor stopped")

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Delete staging files older than the max age.

        Args:
            now: Reference timestamp (epoch seconds); defaults to the current time

        Returns:
            Number of files removed
        """
        if not self.staging_dir.is_dir():
            self.log_debug(f"Staging directory {self.staging_dir} does not exist")
            return 0

        if now is None:
            now = time.time()
        max_age_seconds = self.max_age_hours * 3600
        removed = 0

        for file_path in self.staging_dir.iterdir():
            try:
                if not file_path.is_file():
                    continue
                if file_age_seconds(file_path, now) <= max_age_seconds:
                    continue
                if delete_if_exists(file_path):
                    removed += 1
                    self.log_debug(f"Removed orphaned file {file_path.name}")
            except OSError as e:
                self.log_warning(f"Failed to remove orphaned file {file_path}: {e}")

        if removed:
            self.log_info(
                f"Removed {removed} orphaned file(s) older than {self.max_age_hours}h"
            )
        self.last_removed = removed
        return removed

    async def execute_cleanup(self) -> int:
        """Scheduler entry point: sweep off the event loop."""
        return await self.run_in_executor(self.sweep)
