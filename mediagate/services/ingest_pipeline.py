# mediagate/services/ingest_pipeline.py
"""
Ingest Pipeline

Per-file control flow: resolve the object definition, validate the file,
derive variants, then deliver synchronously or queue an async upload.

    Received -> Validated -> Transformed -> StorageDecided -> Delivered | Queued

Every local path the request produces is tracked; on any error all of them
are deleted before the error leaves ``ingest()``. On success ownership of
the files passes to the uploader (sync) or the queued job (async).
"""

import time
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from ..config import settings
from ..database.async_upload_operations import SyncAsyncUploadOperations
from ..database.exceptions import AsyncUploadOperationError, DatabaseOperationError
from ..enums import LoggerName, ResponseStatus
from ..exceptions import (
    FileNotSupportedError,
    InvalidTagError,
    MediaGateError,
    MetadataStoreError,
    MissingFileError,
)
from ..models.profile_model import ObjectSpec
from ..models.upload_model import (
    AsyncUploadJobCreate,
    AsyncUploadResult,
    IncomingFile,
    StagedFile,
    UploadResult,
    UploadTarget,
)
from ..utils.staged_files import StagedFiles
from .image_pipeline.transform_engine import TransformEngine
from .image_pipeline.validator import nearest_aspect_ratio, validate_image
from .logger import get_service_logger
from .profile_service import SyncProfileService
from .storage.uploader import StorageUploader, build_upload_target

if TYPE_CHECKING:
    from ..workers.upload_scheduler import UploadScheduler

logger = get_service_logger(LoggerName.INGEST_PIPELINE)

FILE_FIELD_NAME = "file"
UNEXPECTED_ERROR_CODE = "UNEXPECTED_ERROR"

# Tag values that mean "keep the staged filename"
NO_TAG_VALUES = (None, "", 0, "0")

IngestResult = Union[UploadResult, AsyncUploadResult]


def has_tag(tag: Any) -> bool:
    return tag not in NO_TAG_VALUES


def error_body(code: str, detail: Optional[str] = None) -> Dict[str, Any]:
    return {
        "status": ResponseStatus.ERROR.value,
        "error": code,
        "detail": detail or code,
    }


def result_body(result: IngestResult) -> Dict[str, Any]:
    """Response body of a successful ingest"""
    if isinstance(result, AsyncUploadResult):
        body = {
            "status": ResponseStatus.OK.value,
            "jobId": result.job_id,
            "key": result.key,
        }
    else:
        body = {"status": ResponseStatus.OK.value, "urls": list(result.urls)}

    if result.ratio:
        body["ratio"] = result.ratio
    return body


class IngestPipeline:
    """
    Ingest entry point used by the HTTP layer.

    ``ingest()`` raises ``MediaGateError`` subclasses; ``handle()`` wraps it
    and always returns a response body.
    """

    def __init__(
        self,
        profile_service: SyncProfileService,
        upload_ops: SyncAsyncUploadOperations,
        uploader: StorageUploader,
        transform_engine: Optional[TransformEngine] = None,
        scheduler: Optional["UploadScheduler"] = None,
        ratio_precision: Optional[int] = None,
    ):
        self.profile_service = profile_service
        self.upload_ops = upload_ops
        self.uploader = uploader
        self.transform_engine = transform_engine or TransformEngine()
        self.scheduler = scheduler
        self.ratio_precision = (
            ratio_precision if ratio_precision is not None else settings.ratio_precision
        )

    def attach_scheduler(self, scheduler: "UploadScheduler") -> None:
        self.scheduler = scheduler

    def ingest(
        self,
        file: Optional[IncomingFile],
        profile_name: Optional[str] = None,
        object_key: Optional[str] = None,
        tag: Any = None,
    ) -> IngestResult:
        """
        Process one uploaded file.

        Args:
            file: The staged upload, or None when the request carried no file
            profile_name: Profile name; the default profile when empty
            object_key: Object kind within the profile
            tag: Optional new base name for the file (ignored when 0 or empty)

        Returns:
            ``UploadResult`` (delivered) or ``AsyncUploadResult`` (queued)

        Raises:
            MediaGateError: Any failure; all local files of the request are
                deleted first
        """
        staged = StagedFiles()
        if file is not None:
            staged.track(file.local_path)

        started = time.monotonic()
        try:
            result = self._run(file, profile_name, object_key, tag, staged)
        except Exception:
            removed = staged.cleanup()
            logger.debug(f"Ingest failed, removed {removed} staged file(s)")
            raise

        logger.info(
            f"Ingested {file.original_filename} as {profile_name or 'default'}/"
            f"{object_key} in {(time.monotonic() - started) * 1000:.0f}ms"
        )
        return result

    def _run(
        self,
        file: Optional[IncomingFile],
        profile_name: Optional[str],
        object_key: Optional[str],
        tag: Any,
        staged: StagedFiles,
    ) -> IngestResult:
        if file is None or file.field_name != FILE_FIELD_NAME:
            raise MissingFileError(f"Expected an upload in the '{FILE_FIELD_NAME}' field")

        profile, object_spec = self.profile_service.resolve(profile_name, object_key)

        if not object_spec.accepts(file.mime_type):
            raise FileNotSupportedError(
                f"Mime type '{file.mime_type}' is not accepted for '{object_key}'"
            )

        ratio = None
        if file.is_image:
            validate_image(file.local_path, object_spec.constraints, self.ratio_precision)
            ratio = nearest_aspect_ratio(file.local_path)

        source = file
        if has_tag(tag):
            source = self._rename(source, tag, staged)

        files = self._transform(source, object_spec, staged)
        target = build_upload_target(profile, object_spec)

        if object_spec.is_async:
            return self._enqueue(object_key, files, target, ratio, staged)

        urls = self.uploader.deliver(target, files)
        staged.release()
        return UploadResult(urls=urls, ratio=ratio)

    def _rename(self, source: IncomingFile, tag: Any, staged: StagedFiles) -> IncomingFile:
        """Rename the staged file to the tag so derived names inherit it"""
        new_name = Path(str(tag)).name
        if new_name in ("", ".", ".."):
            raise InvalidTagError(f"Tag '{tag}' does not name a file")
        new_path = staged.rename(source.local_path, source.local_path.with_name(new_name))
        logger.debug(f"Renamed {source.filename} to {new_name}")
        return replace(source, local_path=new_path)

    def _transform(
        self, source: IncomingFile, object_spec: ObjectSpec, staged: StagedFiles
    ) -> List[StagedFile]:
        """Source first, then derived variants in transform order"""
        if not source.is_image:
            return [StagedFile.from_incoming(source)]

        derived = self.transform_engine.transform(
            source, object_spec.transforms, object_spec.output_format, staged
        )
        source = self.transform_engine.convert_source(source, object_spec.output_format)

        return [StagedFile.from_incoming(source)] + [
            StagedFile.from_derived(d) for d in derived
        ]

    def _enqueue(
        self,
        object_key: str,
        files: List[StagedFile],
        target: UploadTarget,
        ratio: Optional[str],
        staged: StagedFiles,
    ) -> AsyncUploadResult:
        key = f"{object_key}-{files[0].filename}"
        try:
            job = self.upload_ops.create_job(
                AsyncUploadJobCreate(key=key, options=target, files=files)
            )
        except AsyncUploadOperationError as e:
            raise MetadataStoreError(str(e)) from e

        staged.release()
        logger.info(f"Queued async upload {job.id} ({key})")

        if self.scheduler is not None:
            self.scheduler.start()

        return AsyncUploadResult(job_id=job.id, key=key, ratio=ratio)

    def handle(
        self,
        file: Optional[IncomingFile],
        profile_name: Optional[str] = None,
        object_key: Optional[str] = None,
        tag: Any = None,
    ) -> Dict[str, Any]:
        """
        Request boundary: run ``ingest()`` and render the response body.

        Returns:
            ``{"status": "ok", ...}`` or ``{"status": "error", "error": CODE, "detail": ...}``
        """
        try:
            result = self.ingest(file, profile_name, object_key, tag)
        except MediaGateError as e:
            logger.warning(f"Ingest rejected: {e}")
            return error_body(e.code, e.detail)
        except DatabaseOperationError as e:
            logger.error(f"Metadata store error during ingest: {e}")
            return error_body(MetadataStoreError.code, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during ingest: {e}")
            return error_body(UNEXPECTED_ERROR_CODE, str(e))

        return result_body(result)
