# mediagate/exceptions.py
"""
Custom exceptions for MediaGate.

Every pipeline failure is a ``MediaGateError`` carrying a short
machine-readable ``code`` (returned to callers in the ``error`` field) and a
free-text ``detail``. The subclasses group failures by how callers treat
them: input errors are never retried, transform errors are surfaced after
cleanup, storage errors fail the request or mark an async job as failed.
"""

from typing import Optional


class MediaGateError(Exception):
    """Base exception for all MediaGate-specific errors."""

    code = "MEDIAGATE_ERROR"

    def __init__(self, detail: Optional[str] = None, code: Optional[str] = None):
        if code:
            self.code = code
        self.detail = detail or self.code
        super().__init__(self.detail)

    def __str__(self):
        if self.detail and self.detail != self.code:
            return f"{self.code}: {self.detail}"
        return self.code


# =============================================================================
# INPUT ERRORS
# =============================================================================


class InputError(MediaGateError):
    """Invalid request input. Surfaced to the caller, never retried."""

    code = "INPUT_ERROR"


class MissingFileError(InputError):
    """No file was received under the expected form field."""

    code = "MISSING_FILE"


class ProfileNotFoundError(InputError):
    """The requested profile does not exist in the metadata store."""

    code = "PROFILE_NOT_FOUND"


class ObjectNotFoundError(InputError):
    """The profile has no object definition under the requested key."""

    code = "OBJECT_NOT_FOUND"


class InvalidObjectSpecError(InputError):
    """A stored object definition could not be parsed."""

    code = "INVALID_OBJECT_SPEC"


class FileNotSupportedError(InputError):
    """The file's mime type is not accepted by the object definition."""

    code = "FILE_NOT_SUPPORTED"


class InvalidWidthError(InputError):
    code = "FILE_INVALID_WIDTH"


class InvalidHeightError(InputError):
    code = "FILE_INVALID_HEIGHT"


class InvalidRatioError(InputError):
    code = "FILE_INVALID_RATIO"


class InvalidOutputFormatError(InputError):
    """The object definition names an output format no encoder handles."""

    code = "INVALID_OUTPUT_FORMAT"


class InvalidTagError(InputError):
    """The tag does not reduce to a usable file name."""

    code = "INVALID_TAG"


# =============================================================================
# PROCESSING ERRORS
# =============================================================================


class TransformError(MediaGateError):
    """Image decode or encode failure."""

    code = "TRANSFORM_FAILED"


class StorageError(MediaGateError):
    """Object storage PUT or multipart failure."""

    code = "STORAGE_UPLOAD_FAILED"


class MultipartProtocolError(StorageError):
    """A multipart response was missing its upload id or part tag."""

    code = "MULTIPART_UPLOAD_UNEXPECTED_RESPONSE"


class MetadataStoreError(MediaGateError):
    """The metadata store could not serve a lookup or job update."""

    code = "METADATA_STORE_ERROR"
