# mediagate/runtime.py
"""
MediaGate runtime.

Wires the metadata store, storage uploader, workers and ingest pipeline
together and owns the APScheduler instance that drives the workers:

- Async upload drain: interval job, paused until uploads are queued, paused
  again when a drain pass leaves nothing pending.
- Janitor sweep: runs every ``JANITOR_INTERVAL_HOURS`` regardless of load.

The HTTP layer creates one runtime, awaits ``start()``, routes uploads to
``runtime.pipeline.handle()`` and awaits ``stop()`` on shutdown.
"""

import asyncio
from typing import Any, Dict, Optional

import psycopg
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler
from psycopg_pool import PoolTimeout

from .config import settings
from .database.async_upload_operations import SyncAsyncUploadOperations
from .database.core import SyncDatabase
from .database.exceptions import DatabaseOperationError
from .database.profile_operations import SyncProfileOperations
from .database.schema import ensure_schema
from .enums import LoggerName, UploadJobStatus
from .services.ingest_pipeline import IngestPipeline
from .services.logger import configure_logging, get_service_logger
from .services.profile_service import SyncProfileService
from .services.storage.uploader import StorageUploader
from .workers.async_upload_worker import AsyncUploadWorker
from .workers.exceptions import WorkerInitializationError
from .workers.janitor_worker import JanitorWorker
from .workers.upload_scheduler import UploadScheduler

logger = get_service_logger(LoggerName.SYSTEM)

JANITOR_JOB_ID = "janitor_sweep"


def janitor_trigger_args(interval_hours: int) -> Dict[str, Any]:
    """Cron on the hour when the interval divides a day, plain interval otherwise"""
    if interval_hours < 24 and 24 % interval_hours == 0:
        return {"trigger": "cron", "hour": f"*/{interval_hours}", "minute": 0}
    return {"trigger": "interval", "hours": interval_hours}


class MediaGateRuntime:
    def __init__(
        self,
        database: Optional[SyncDatabase] = None,
        uploader: Optional[StorageUploader] = None,
        scheduler: Optional[BaseScheduler] = None,
    ):
        """
        Build the component graph. Nothing is connected or started here.

        Args:
            database: Metadata store; defaults to ``DATABASE_URL``
            uploader: Storage uploader; defaults to S3 clients from settings
            scheduler: APScheduler instance; defaults to an AsyncIOScheduler
        """
        self.database = database or SyncDatabase()
        self.profile_ops = SyncProfileOperations(self.database)
        self.upload_ops = SyncAsyncUploadOperations(self.database)
        self.uploader = uploader or StorageUploader()
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

        self.upload_worker = AsyncUploadWorker(self.upload_ops, self.uploader)
        self.janitor_worker = JanitorWorker()
        self.upload_scheduler = UploadScheduler(
            self.scheduler, self.upload_worker.execute_drain
        )
        self.upload_worker.attach_scheduler(self.upload_scheduler)

        self.pipeline = IngestPipeline(
            profile_service=SyncProfileService(self.profile_ops),
            upload_ops=self.upload_ops,
            uploader=self.uploader,
            scheduler=self.upload_scheduler,
        )
        self.running = False

    @property
    def workers(self):
        return [self.upload_worker, self.janitor_worker]

    def _initialize_database(self) -> None:
        try:
            self.database.initialize()
            ensure_schema(self.database)
        except (psycopg.Error, PoolTimeout, DatabaseOperationError) as e:
            self.database.close()
            raise WorkerInitializationError(
                f"Metadata store unavailable: {e}"
            ) from e

    async def start(self) -> None:
        """
        Connect, start workers and the scheduler.

        Raises:
            WorkerInitializationError: If the metadata store cannot be reached
        """
        configure_logging(settings.log_level, settings.log_file)
        logger.info(f"Starting MediaGate runtime ({settings.environment})")

        self._initialize_database()
        settings.ensure_directories()

        await asyncio.gather(*[worker.start() for worker in self.workers])

        self.scheduler.add_job(
            self.janitor_worker.execute_cleanup,
            id=JANITOR_JOB_ID,
            name="Staging directory sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **janitor_trigger_args(settings.janitor_interval_hours),
        )
        self.scheduler.start()

        # Jobs left pending by a previous process
        pending = self.upload_ops.count_jobs(UploadJobStatus.PENDING)
        if pending:
            logger.info(f"Found {pending} pending upload(s) from a previous run")
            self.upload_scheduler.start()

        self.running = True
        logger.info("MediaGate runtime started")

    async def stop(self) -> None:
        """Stop the scheduler and workers, then release the connection pool."""
        logger.info("Stopping MediaGate runtime")

        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        results = await asyncio.gather(
            *[worker.stop() for worker in self.workers], return_exceptions=True
        )
        for worker, result in zip(self.workers, results):
            if isinstance(result, Exception):
                logger.error(f"Error stopping {worker.name}: {result}")

        self.database.close()
        self.running = False
        logger.info("MediaGate runtime stopped")

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "upload_scheduler_running": self.upload_scheduler.is_running(),
            "workers": [worker.get_status() for worker in self.workers],
            "database": self.database.get_pool_stats(),
            "database_healthy": self.database.check_pool_health(),
        }
