# mediagate/workers/async_upload_worker.py
"""
Async Upload Worker.

Drains ``pending`` upload jobs: each job is marked ``uploading``, delivered,
then marked ``success`` with its URLs or ``failed`` with the error text.
Failures are per job; the pass always continues with the next one.
``failed`` is terminal.

Claiming a job is a plain update by id, not a compare-and-swap: running
more than one worker process against the same store can deliver a job
twice.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..database.async_upload_operations import SyncAsyncUploadOperations
from ..database.exceptions import AsyncUploadOperationError
from ..enums import LoggerName, UploadJobStatus, WorkerType
from ..exceptions import MediaGateError
from ..models.upload_model import AsyncUploadJob
from ..services.storage.uploader import StorageUploader
from .base_worker import BaseWorker
from .exceptions import WorkerInitializationError

if TYPE_CHECKING:
    from .upload_scheduler import UploadScheduler


@dataclass
class DrainResult:
    """Outcome of one drain pass"""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    scheduler_stopped: bool = False


class AsyncUploadWorker(BaseWorker):
    """
    Worker that delivers deferred uploads.

    Timing belongs to the ``UploadScheduler``; this worker only knows how to
    run one drain pass and how to ask the scheduler to stop when idle.
    """

    def __init__(
        self,
        upload_ops: SyncAsyncUploadOperations,
        uploader: StorageUploader,
        scheduler: Optional["UploadScheduler"] = None,
    ):
        if not upload_ops:
            raise WorkerInitializationError("SyncAsyncUploadOperations is required")
        if not uploader:
            raise WorkerInitializationError("StorageUploader is required")

        super().__init__(WorkerType.ASYNC_UPLOAD_WORKER, LoggerName.ASYNC_UPLOAD_WORKER)
        self.upload_ops = upload_ops
        self.uploader = uploader
        self.scheduler = scheduler
        self.last_result: Optional[DrainResult] = None

    def attach_scheduler(self, scheduler: "UploadScheduler") -> None:
        self.scheduler = scheduler

    async def initialize(self) -> None:
        self.log_info("Async upload worker initialized")

    async def cleanup(self) -> None:
        self.log_info("Async upload worker stopped")

    def process_job(self, job: AsyncUploadJob) -> UploadJobStatus:
        """
        Deliver one job and record the outcome.

        Returns:
            The status the job was left in
        """
        try:
            self.upload_ops.mark_job_uploading(job.id)
        except AsyncUploadOperationError as e:
            self.log_error(f"Could not claim job {job.id} ({job.key})", e)
            return UploadJobStatus.PENDING

        try:
            urls = self.uploader.deliver(job.options, job.files)
        except MediaGateError as e:
            self.log_warning(f"Job {job.id} ({job.key}) failed: {e}")
            self._record_failure(job, str(e))
            return UploadJobStatus.FAILED
        except Exception as e:
            self.log_error(f"Unexpected error delivering job {job.id} ({job.key})", e)
            self._record_failure(job, str(e))
            return UploadJobStatus.FAILED

        try:
            self.upload_ops.mark_job_succeeded(job.id, urls)
        except AsyncUploadOperationError as e:
            self.log_error(f"Job {job.id} delivered but could not be marked success", e)
            return UploadJobStatus.UPLOADING

        self.log_info(f"Job {job.id} ({job.key}) delivered {len(urls)} file(s)")
        return UploadJobStatus.SUCCESS

    def _record_failure(self, job: AsyncUploadJob, error_message: str) -> None:
        try:
            self.upload_ops.mark_job_failed(job.id, error_message)
        except AsyncUploadOperationError as e:
            self.log_error(f"Could not mark job {job.id} as failed", e)

    def drain(self) -> DrainResult:
        """
        Run one pass over every pending job, then stop the scheduler if no
        pending job remains.
        """
        result = DrainResult()

        try:
            pending_jobs = self.upload_ops.get_jobs_by_status(UploadJobStatus.PENDING)
        except AsyncUploadOperationError as e:
            self.log_error("Failed to list pending uploads", e)
            self.last_result = result
            return result

        if pending_jobs:
            self.log_debug(f"Draining {len(pending_jobs)} pending upload(s)")

        for job in pending_jobs:
            status = self.process_job(job)
            result.processed += 1
            if status == UploadJobStatus.SUCCESS:
                result.succeeded += 1
            elif status == UploadJobStatus.FAILED:
                result.failed += 1
            else:
                result.skipped += 1

        if self.scheduler is not None:
            try:
                result.scheduler_stopped = self.scheduler.stop_if_idle(
                    lambda: self.upload_ops.count_jobs(UploadJobStatus.PENDING)
                )
            except AsyncUploadOperationError as e:
                self.log_error("Failed to count pending uploads", e)

        if result.processed:
            self.log_info(
                f"Drain pass finished: {result.succeeded} delivered, "
                f"{result.failed} failed, {result.skipped} skipped"
            )
        self.last_result = result
        return result

    async def execute_drain(self) -> DrainResult:
        """Scheduler entry point: run a drain pass off the event loop."""
        return await self.run_in_executor(self.drain)

    def get_status(self):
        status = super().get_status()
        status["scheduler_running"] = (
            self.scheduler.is_running() if self.scheduler is not None else False
        )
        if self.last_result is not None:
            status["last_drain"] = {
                "processed": self.last_result.processed,
                "succeeded": self.last_result.succeeded,
                "failed": self.last_result.failed,
            }
        return status
