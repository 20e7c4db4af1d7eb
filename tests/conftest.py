# tests/conftest.py
"""
Pytest configuration and shared fixtures for MediaGate tests.

Images are real files created with Pillow in a temporary staging directory.
The metadata store is replaced by in-memory fakes with the same interface as
the operations classes; S3 by botocore Stubber or MagicMock clients.
"""

import itertools
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, Mock

import pytest
from PIL import Image

from mediagate.database.exceptions import AsyncUploadOperationError
from mediagate.enums import UploadJobStatus
from mediagate.models.upload_model import (
    AsyncUploadJob,
    AsyncUploadJobCreate,
    IncomingFile,
)
from mediagate.utils.time_utils import utc_now


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "storage: object storage delivery tests")
    config.addinivalue_line("markers", "worker: async upload and janitor worker tests")
    config.addinivalue_line("markers", "pipeline: image pipeline and ingest tests")
    config.addinivalue_line(
        "markers", "integration: end-to-end ingest tests using in-memory fakes"
    )


# ============================================================================
# IN-MEMORY METADATA STORE
# ============================================================================


class FakeProfileOperations:
    """Stands in for SyncProfileOperations"""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.documents = dict(documents or {})

    def get_profile_document(self, name: str) -> Optional[Dict[str, Any]]:
        document = self.documents.get(name)
        if document is None:
            return None
        return {"name": name, **document}

    def save_profile_document(self, document: Dict[str, Any]) -> None:
        self.documents[document["name"]] = document


class FakeAsyncUploadOperations:
    """Stands in for SyncAsyncUploadOperations"""

    def __init__(self):
        self.jobs: Dict[int, AsyncUploadJob] = {}
        self.status_history: Dict[int, List[UploadJobStatus]] = {}
        self._ids = itertools.count(1)
        self.fail_on: set = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise AsyncUploadOperationError("store unavailable", operation=operation)

    def create_job(self, job_data: AsyncUploadJobCreate) -> AsyncUploadJob:
        self._check("create_job")
        job_id = next(self._ids)
        job = AsyncUploadJob(
            id=job_id,
            key=job_data.key,
            options=job_data.options,
            files=job_data.files,
            status=job_data.status,
            created_at=utc_now(),
        )
        self.jobs[job_id] = job
        self.status_history[job_id] = [job.status]
        return job

    def get_jobs_by_status(self, status: UploadJobStatus) -> List[AsyncUploadJob]:
        self._check("get_jobs_by_status")
        return [job for job in self.jobs.values() if job.status == status]

    def update_job(self, job_id: int, patch: Dict[str, Any]) -> bool:
        self._check("update_job")
        if job_id not in self.jobs:
            return False
        job = self.jobs[job_id].model_copy(update={**patch, "updated_at": utc_now()})
        self.jobs[job_id] = job
        if "status" in patch:
            self.status_history[job_id].append(UploadJobStatus(patch["status"]))
        return True

    def mark_job_uploading(self, job_id: int) -> bool:
        return self.update_job(job_id, {"status": UploadJobStatus.UPLOADING})

    def mark_job_succeeded(self, job_id: int, urls: List[str]) -> bool:
        return self.update_job(job_id, {"status": UploadJobStatus.SUCCESS, "urls": urls})

    def mark_job_failed(self, job_id: int, error_message: str) -> bool:
        return self.update_job(
            job_id, {"status": UploadJobStatus.FAILED, "error": error_message}
        )

    def count_jobs(self, status: UploadJobStatus) -> int:
        self._check("count_jobs")
        return len(self.get_jobs_by_status(status))


@pytest.fixture
def profile_document() -> Dict[str, Any]:
    """A profile with a sync image object, an async one and a video object."""
    return {
        "bucket": {"name": "media-bucket", "basePath": "uploads/", "region": "us-east-1"},
        "objects": {
            "avatar": {
                "mimeTypes": ["image/jpeg", "image/png", "image/webp"],
                "outputFormat": "webp",
                "constraints": {"minWidth": 100, "minHeight": 100},
                "transforms": [{"name": "thumb", "width": 200, "quality": 80}],
            },
            "banner": {
                "bucketPath": "banners/",
                "mimeTypes": ["image/jpeg"],
                "constraints": {"ratio": "3/2"},
            },
            "gallery": {
                "mimeTypes": ["image/jpeg"],
                "async": True,
                "transforms": [{"name": "small", "width": 120}],
            },
            "clip": {"mimeTypes": ["video/mp4"], "maxAge": 600},
        },
    }


@pytest.fixture
def profile_ops(profile_document):
    return FakeProfileOperations({"default": profile_document})


@pytest.fixture
def make_profile_ops():
    """Factory building a profile store from {name: document}."""
    return FakeProfileOperations


@pytest.fixture
def upload_ops():
    return FakeAsyncUploadOperations()


# ============================================================================
# FILES
# ============================================================================


@pytest.fixture
def staging_dir(tmp_path) -> Path:
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture
def make_image(staging_dir):
    """Factory writing a real image into the staging directory."""

    def _make_image(
        name: str = "a1b2c3d4",
        size=(400, 300),
        image_format: str = "JPEG",
        color=(200, 40, 40),
        mode: str = "RGB",
    ) -> Path:
        path = staging_dir / name
        Image.new(mode, size, color).save(path, image_format)
        return path

    return _make_image


@pytest.fixture
def make_incoming(make_image):
    """Factory returning an IncomingFile for a freshly written image."""

    def _make_incoming(
        name: str = "a1b2c3d4",
        size=(400, 300),
        image_format: str = "JPEG",
        mime_type: str = "image/jpeg",
        field_name: str = "file",
    ) -> IncomingFile:
        path = make_image(name=name, size=size, image_format=image_format)
        return IncomingFile(
            local_path=path,
            original_filename=f"photo.{image_format.lower()}",
            mime_type=mime_type,
            size_bytes=path.stat().st_size,
            field_name=field_name,
        )

    return _make_incoming


# ============================================================================
# STORAGE
# ============================================================================


@pytest.fixture
def s3_client():
    """MagicMock S3 client whose calls all succeed."""
    client = MagicMock()
    client.put_object.return_value = {"ETag": '"put-etag"'}
    client.create_multipart_upload.return_value = {"UploadId": "upload-1"}
    client.upload_part.side_effect = lambda **kwargs: {
        "ETag": f'"part-{kwargs["PartNumber"]}"'
    }
    client.complete_multipart_upload.return_value = {"ETag": '"complete-etag"'}
    return client


@pytest.fixture
def mock_sync_db():
    """
    Mock sync database connection for testing sync database operations.

    Returns:
        tuple: (db_mock, connection_mock, cursor_mock) for easy access in tests
    """
    db = Mock()
    conn = Mock()
    cursor = Mock()

    db.get_connection.return_value.__enter__ = Mock(return_value=conn)
    db.get_connection.return_value.__exit__ = Mock(return_value=None)
    conn.cursor.return_value.__enter__ = Mock(return_value=cursor)
    conn.cursor.return_value.__exit__ = Mock(return_value=None)

    return db, conn, cursor
