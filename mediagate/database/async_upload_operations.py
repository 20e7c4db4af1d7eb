# mediagate/database/async_upload_operations.py
"""
Async Upload Operations - Database layer for the deferred upload job queue.

Responsibilities:
- Insert pending upload jobs
- Retrieve jobs by status in creation order
- Patch job status, urls and error text
- Count jobs by status (drives the upload scheduler's stop decision)

Jobs are never deleted here.
"""

from typing import Any, Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from ..enums import UploadJobStatus
from ..models.upload_model import AsyncUploadJob, AsyncUploadJobCreate
from ..utils.time_utils import utc_now
from .core import SyncDatabase
from .exceptions import AsyncUploadOperationError
from .schema import ASYNC_UPLOADS_TABLE

JOB_FIELDS = "id, key, options, files, status, created_at, updated_at, urls, error"

# Columns a patch may touch, with the adapter used for each value
PATCHABLE_COLUMNS = {
    "status": lambda v: UploadJobStatus(v).value,
    "urls": lambda v: Jsonb(list(v)) if v is not None else None,
    "error": lambda v: str(v) if v is not None else None,
}


class SyncAsyncUploadOperations:
    """
    Synchronous database operations for async upload jobs.

    Status transitions are plain read-then-write updates by id; a single
    worker process is assumed to own the queue.
    """

    def __init__(self, db: SyncDatabase) -> None:
        """Initialize with sync database instance."""
        self.db = db

    def create_job(self, job_data: AsyncUploadJobCreate) -> AsyncUploadJob:
        """
        Persist a new upload job.

        Args:
            job_data: Key, storage options and staged files

        Returns:
            The stored job including its id
        """
        try:
            query = f"""
                INSERT INTO {ASYNC_UPLOADS_TABLE}
                (key, options, files, status, created_at)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {JOB_FIELDS}
            """

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        query,
                        (
                            job_data.key,
                            Jsonb(job_data.options.model_dump()),
                            Jsonb([f.model_dump() for f in job_data.files]),
                            job_data.status.value,
                            utc_now(),
                        ),
                    )
                    result = cur.fetchone()

            return AsyncUploadJob(**result)

        except (psycopg.Error, KeyError, ValueError, TypeError) as e:
            raise AsyncUploadOperationError(
                f"Failed to create upload job: {e}", operation="create_job"
            ) from e

    def get_job(self, job_id: int) -> Optional[AsyncUploadJob]:
        try:
            query = f"SELECT {JOB_FIELDS} FROM {ASYNC_UPLOADS_TABLE} WHERE id = %s"

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, (job_id,))
                    result = cur.fetchone()

            return AsyncUploadJob(**result) if result else None

        except (psycopg.Error, KeyError, ValueError) as e:
            raise AsyncUploadOperationError(
                f"Failed to get upload job: {e}", operation="get_job"
            ) from e

    def get_jobs_by_status(self, status: UploadJobStatus) -> List[AsyncUploadJob]:
        """
        Get all jobs in a status, oldest first.

        Args:
            status: Status to filter by

        Returns:
            List of matching jobs
        """
        try:
            query = f"""
                SELECT {JOB_FIELDS}
                FROM {ASYNC_UPLOADS_TABLE}
                WHERE status = %s
                ORDER BY created_at ASC, id ASC
            """

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, (UploadJobStatus(status).value,))
                    results = cur.fetchall()
                    return [AsyncUploadJob(**row) for row in results]

        except (psycopg.Error, KeyError, ValueError) as e:
            raise AsyncUploadOperationError(
                f"Failed to get jobs by status: {e}", operation="get_jobs_by_status"
            ) from e

    def update_job(self, job_id: int, patch: Dict[str, Any]) -> bool:
        """
        Apply a partial update to a job.

        Args:
            job_id: ID of the job to update
            patch: Mapping of ``status``, ``urls`` and/or ``error`` values

        Returns:
            True if a row was updated
        """
        unknown = set(patch) - set(PATCHABLE_COLUMNS)
        if unknown:
            raise AsyncUploadOperationError(
                f"Cannot patch columns: {', '.join(sorted(unknown))}",
                operation="update_job",
            )

        try:
            columns = list(patch)
            assignments = ", ".join(f"{column} = %s" for column in columns)
            query = f"""
                UPDATE {ASYNC_UPLOADS_TABLE}
                SET {assignments}, updated_at = %s
                WHERE id = %s
            """
            params = [PATCHABLE_COLUMNS[c](patch[c]) for c in columns]
            params.extend([utc_now(), job_id])

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    return cur.rowcount > 0

        except (psycopg.Error, ValueError) as e:
            raise AsyncUploadOperationError(
                f"Failed to update upload job: {e}", operation="update_job"
            ) from e

    def mark_job_uploading(self, job_id: int) -> bool:
        return self.update_job(job_id, {"status": UploadJobStatus.UPLOADING})

    def mark_job_succeeded(self, job_id: int, urls: List[str]) -> bool:
        return self.update_job(
            job_id, {"status": UploadJobStatus.SUCCESS, "urls": urls}
        )

    def mark_job_failed(self, job_id: int, error_message: str) -> bool:
        return self.update_job(
            job_id, {"status": UploadJobStatus.FAILED, "error": error_message}
        )

    def count_jobs(self, status: UploadJobStatus) -> int:
        """
        Count jobs in a status.

        Args:
            status: Status to count

        Returns:
            Number of matching jobs
        """
        try:
            query = f"SELECT COUNT(*) AS count FROM {ASYNC_UPLOADS_TABLE} WHERE status = %s"

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, (UploadJobStatus(status).value,))
                    result = cur.fetchone()
                    return int(result["count"]) if result else 0

        except (psycopg.Error, KeyError, ValueError) as e:
            raise AsyncUploadOperationError(
                f"Failed to count jobs: {e}", operation="count_jobs"
            ) from e
