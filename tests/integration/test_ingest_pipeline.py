#!/usr/bin/env python3
"""
Integration tests for the ingest pipeline.

Runs real images through validation, transforms and delivery against an
in-memory metadata store and a mocked S3 client, then checks what reached
storage and what is left in the staging directory.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from mediagate.database.exceptions import AsyncUploadOperationError
from mediagate.enums import UploadJobStatus
from mediagate.exceptions import (
    FileNotSupportedError,
    InvalidRatioError,
    InvalidTagError,
    InvalidWidthError,
    MissingFileError,
    ObjectNotFoundError,
    ProfileNotFoundError,
    StorageError,
)
from mediagate.models.upload_model import AsyncUploadResult, IncomingFile, UploadResult
from mediagate.services.ingest_pipeline import IngestPipeline, result_body
from mediagate.services.profile_service import SyncProfileService
from mediagate.services.storage.uploader import StorageUploader
from mediagate.workers.async_upload_worker import AsyncUploadWorker

BUCKET_URL = "https://media-bucket.s3.amazonaws.com"


@pytest.fixture
def uploader(s3_client):
    return StorageUploader(client_factory=lambda region: s3_client)


@pytest.fixture
def scheduler():
    return MagicMock()


@pytest.fixture
def pipeline(profile_ops, upload_ops, uploader, scheduler):
    return IngestPipeline(
        SyncProfileService(profile_ops, default_profile="default"),
        upload_ops,
        uploader,
        scheduler=scheduler,
        ratio_precision=1,
    )


def staged_names(staging_dir):
    return sorted(p.name for p in staging_dir.iterdir())


def put_calls(s3_client):
    return [c.kwargs for c in s3_client.put_object.call_args_list]


@pytest.mark.integration
@pytest.mark.pipeline
class TestSynchronousIngest:
    def test_image_with_transform_and_output_format(
        self, pipeline, make_incoming, s3_client, staging_dir
    ):
        source = make_incoming(name="f00d", size=(1600, 1200))

        result = pipeline.ingest(source, "default", "avatar")

        assert isinstance(result, UploadResult)
        assert result.urls == [
            f"{BUCKET_URL}/uploads/f00d.webp",
            f"{BUCKET_URL}/uploads/f00d_thumb.webp",
        ]
        assert result.ratio == "4:3"

        calls = put_calls(s3_client)
        assert [c["Key"] for c in calls] == ["uploads/f00d.webp", "uploads/f00d_thumb.webp"]
        assert all(c["ContentType"] == "image/webp" for c in calls)
        assert all(c["ACL"] == "public-read" for c in calls)
        assert all(c["CacheControl"] == "max-age=31536000" for c in calls)
        assert staged_names(staging_dir) == []

    def test_thumbnail_is_resized(self, pipeline, make_incoming, s3_client, tmp_path):
        pipeline.ingest(make_incoming(name="f00d", size=(1600, 1200)), "default", "avatar")

        thumb = tmp_path / "thumb.webp"
        thumb.write_bytes(put_calls(s3_client)[1]["Body"])
        with Image.open(thumb) as img:
            assert img.format == "WEBP"
            assert img.size == (200, 150)

    def test_source_format_kept_without_output_format(
        self, pipeline, make_incoming, s3_client
    ):
        result = pipeline.ingest(make_incoming(name="b1", size=(300, 200)), None, "banner")

        assert result.urls == [f"{BUCKET_URL}/uploads/banners/b1.jpg"]
        assert put_calls(s3_client)[0]["ContentType"] == "image/jpeg"

    def test_tag_renames_all_outputs(self, pipeline, make_incoming, s3_client, staging_dir):
        source = make_incoming(name="f00d", size=(1600, 1200))

        result = pipeline.ingest(source, "default", "avatar", tag="cover")

        assert result.urls == [
            f"{BUCKET_URL}/uploads/cover.webp",
            f"{BUCKET_URL}/uploads/cover_thumb.webp",
        ]
        assert staged_names(staging_dir) == []

    @pytest.mark.parametrize("tag", [None, "", 0, "0"])
    def test_empty_tags_keep_the_staged_name(self, pipeline, make_incoming, tag):
        result = pipeline.ingest(make_incoming(name="b1", size=(300, 200)), None, "banner", tag)
        assert result.urls == [f"{BUCKET_URL}/uploads/banners/b1.jpg"]

    def test_tag_cannot_leave_the_staging_directory(
        self, pipeline, make_incoming, staging_dir
    ):
        result = pipeline.ingest(
            make_incoming(name="b1", size=(300, 200)), None, "banner", tag="../escape"
        )

        assert result.urls == [f"{BUCKET_URL}/uploads/banners/escape.jpg"]
        assert not (staging_dir.parent / "escape").exists()

    @pytest.mark.parametrize("tag", [".", "..", "uploads/..", "/"])
    def test_tag_without_a_file_name_is_rejected(
        self, pipeline, make_incoming, staging_dir, s3_client, tag
    ):
        source = make_incoming(name="b1", size=(300, 200))

        with pytest.raises(InvalidTagError) as exc_info:
            pipeline.ingest(source, None, "banner", tag)

        assert exc_info.value.code == "INVALID_TAG"
        assert staged_names(staging_dir) == []
        assert staging_dir.is_dir()
        s3_client.put_object.assert_not_called()

    def test_tag_error_body(self, pipeline, make_incoming):
        body = pipeline.handle(make_incoming(name="b1", size=(300, 200)), None, "banner", "..")
        assert body["error"] == "INVALID_TAG"

    def test_non_image_skips_image_steps(self, pipeline, staging_dir, s3_client):
        path = staging_dir / "c1"
        path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
        clip = IncomingFile(
            local_path=path,
            original_filename="clip.mp4",
            mime_type="video/mp4",
            size_bytes=path.stat().st_size,
        )

        result = pipeline.ingest(clip, "default", "clip")

        assert result.urls == [f"{BUCKET_URL}/uploads/c1.mp4"]
        assert result.ratio is None
        assert put_calls(s3_client)[0]["CacheControl"] == "max-age=600"
        assert "ratio" not in result_body(result)


@pytest.mark.integration
@pytest.mark.pipeline
class TestIngestRejections:
    def test_missing_file(self, pipeline):
        with pytest.raises(MissingFileError):
            pipeline.ingest(None, "default", "avatar")

    def test_wrong_field_name(self, pipeline, make_incoming, staging_dir):
        with pytest.raises(MissingFileError):
            pipeline.ingest(make_incoming(field_name="image"), "default", "avatar")
        assert staged_names(staging_dir) == []

    def test_unknown_profile(self, pipeline, make_incoming, staging_dir):
        with pytest.raises(ProfileNotFoundError):
            pipeline.ingest(make_incoming(), "unknown", "avatar")
        assert staged_names(staging_dir) == []

    def test_unknown_object(self, pipeline, make_incoming):
        with pytest.raises(ObjectNotFoundError):
            pipeline.ingest(make_incoming(), "default", "poster")

    def test_unsupported_mime_type(self, pipeline, make_incoming, staging_dir, s3_client):
        source = make_incoming(image_format="GIF", mime_type="image/gif")

        with pytest.raises(FileNotSupportedError):
            pipeline.ingest(source, "default", "avatar")

        assert staged_names(staging_dir) == []
        s3_client.put_object.assert_not_called()

    def test_too_small(self, pipeline, make_incoming, staging_dir):
        with pytest.raises(InvalidWidthError):
            pipeline.ingest(make_incoming(size=(50, 400)), "default", "avatar")
        assert staged_names(staging_dir) == []

    def test_wrong_ratio(self, pipeline, make_incoming, staging_dir):
        with pytest.raises(InvalidRatioError):
            pipeline.ingest(make_incoming(size=(300, 150)), "default", "banner")
        assert staged_names(staging_dir) == []

    def test_storage_failure_removes_every_staged_file(
        self, pipeline, make_incoming, s3_client, staging_dir
    ):
        s3_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )

        with pytest.raises(StorageError):
            pipeline.ingest(make_incoming(name="f00d", size=(1600, 1200)), "default", "avatar")

        assert staged_names(staging_dir) == []


@pytest.mark.integration
@pytest.mark.worker
class TestAsynchronousIngest:
    def test_queues_job_and_starts_scheduler(
        self, pipeline, make_incoming, upload_ops, scheduler, staging_dir, s3_client
    ):
        result = pipeline.ingest(make_incoming(name="g1", size=(400, 300)), "default", "gallery")

        assert isinstance(result, AsyncUploadResult)
        assert result.key == "gallery-g1"
        assert result.ratio == "4:3"
        job = upload_ops.jobs[result.job_id]
        assert job.status == UploadJobStatus.PENDING
        assert [f.filename for f in job.files] == ["g1", "g1_small"]
        assert job.options.base_path == "uploads/"
        scheduler.start.assert_called_once()
        s3_client.put_object.assert_not_called()
        assert staged_names(staging_dir) == ["g1", "g1_small"]

    def test_drain_delivers_queued_job(
        self, pipeline, make_incoming, upload_ops, uploader, staging_dir
    ):
        result = pipeline.ingest(make_incoming(name="g1", size=(400, 300)), "default", "gallery")

        AsyncUploadWorker(upload_ops, uploader).drain()

        job = upload_ops.jobs[result.job_id]
        assert job.status == UploadJobStatus.SUCCESS
        assert job.urls == [f"{BUCKET_URL}/uploads/g1.jpg", f"{BUCKET_URL}/uploads/g1_small.jpg"]
        assert staged_names(staging_dir) == []

    def test_queue_failure_removes_staged_files(
        self, pipeline, make_incoming, upload_ops, scheduler, staging_dir
    ):
        upload_ops.fail_on.add("create_job")

        body = pipeline.handle(make_incoming(name="g1"), "default", "gallery")

        assert body["error"] == "METADATA_STORE_ERROR"
        assert staged_names(staging_dir) == []
        scheduler.start.assert_not_called()


@pytest.mark.integration
@pytest.mark.pipeline
class TestHandle:
    def test_success_body(self, pipeline, make_incoming):
        body = pipeline.handle(make_incoming(name="b1", size=(300, 200)), "default", "banner")

        assert body == {
            "status": "ok",
            "urls": [f"{BUCKET_URL}/uploads/banners/b1.jpg"],
            "ratio": "3:2",
        }

    def test_async_body(self, pipeline, make_incoming):
        body = pipeline.handle(make_incoming(name="g1"), "default", "gallery")

        assert body["status"] == "ok"
        assert body["key"] == "gallery-g1"
        assert isinstance(body["jobId"], int)

    def test_error_body(self, pipeline):
        body = pipeline.handle(None, "default", "avatar")

        assert body["status"] == "error"
        assert body["error"] == "MISSING_FILE"
        assert body["detail"]

    def test_store_error_from_database_layer(self, upload_ops, uploader, make_incoming):
        profile_service = MagicMock()
        profile_service.resolve.side_effect = AsyncUploadOperationError("down")
        pipeline = IngestPipeline(profile_service, upload_ops, uploader)

        assert pipeline.handle(make_incoming(), "default", "avatar")["error"] == (
            "METADATA_STORE_ERROR"
        )

    def test_unexpected_error(self, upload_ops, uploader, make_incoming, staging_dir):
        profile_service = MagicMock()
        profile_service.resolve.side_effect = RuntimeError("boom")
        pipeline = IngestPipeline(profile_service, upload_ops, uploader)

        body = pipeline.handle(make_incoming(), "default", "avatar")

        assert body == {"status": "error", "error": "UNEXPECTED_ERROR", "detail": "boom"}
        assert staged_names(staging_dir) == []
