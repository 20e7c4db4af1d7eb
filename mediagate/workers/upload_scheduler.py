# mediagate/workers/upload_scheduler.py
"""
Upload Scheduler

Owns the periodic APScheduler job that drains the async upload queue. The
job exists for the lifetime of the scheduler but only fires while started:
enqueuing a job starts it, a drain pass that leaves nothing pending stops
it.

State changes are serialized by an in-process lock; ``stop_if_idle`` checks
the queue while holding it, so a job enqueued concurrently either is seen
by the check or restarts the scheduler once the stop is complete.
"""

import threading
from typing import Any, Callable, Optional

from apscheduler.schedulers.base import BaseScheduler

from ..config import settings
from ..enums import LoggerName
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.SCHEDULER)

ASYNC_UPLOAD_JOB_ID = "async_upload_drain"


class UploadScheduler:
    def __init__(
        self,
        scheduler: BaseScheduler,
        drain: Callable[[], Any],
        interval_seconds: Optional[int] = None,
        job_id: str = ASYNC_UPLOAD_JOB_ID,
    ):
        """
        Register the drain job, paused.

        Args:
            scheduler: APScheduler instance owning the job
            drain: Callable run on every tick (sync or coroutine function)
            interval_seconds: Tick interval; defaults to the configured value
            job_id: APScheduler job id
        """
        self.scheduler = scheduler
        self.job_id = job_id
        self.interval_seconds = (
            interval_seconds or settings.async_upload_interval_seconds
        )
        self._lock = threading.Lock()
        self._running = False

        self.scheduler.add_job(
            drain,
            trigger="interval",
            seconds=self.interval_seconds,
            id=self.job_id,
            name="Async upload drain",
            next_run_time=None,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    def start(self) -> bool:
        """
        Start ticking. No-op when already running.

        Returns:
            True if the scheduler transitioned to running
        """
        with self._lock:
            if self._running:
                return False
            self.scheduler.resume_job(self.job_id)
            self._running = True
        logger.info(f"Async upload scheduler started ({self.interval_seconds}s interval)")
        return True

    def stop(self) -> bool:
        """
        Stop ticking. No-op when already stopped.

        Returns:
            True if the scheduler transitioned to stopped
        """
        with self._lock:
            if not self._running:
                return False
            self.scheduler.pause_job(self.job_id)
            self._running = False
        logger.info("Async upload scheduler stopped")
        return True

    def stop_if_idle(self, pending_count: Callable[[], int]) -> bool:
        """
        Stop when ``pending_count()`` reports nothing left to do.

        Returns:
            True if the scheduler was stopped by this call
        """
        with self._lock:
            if not self._running or pending_count() > 0:
                return False
            self.scheduler.pause_job(self.job_id)
            self._running = False
        logger.info("No pending uploads, async upload scheduler stopped")
        return True

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def next_run_time(self):
        job = self.scheduler.get_job(self.job_id)
        return job.next_run_time if job else None
