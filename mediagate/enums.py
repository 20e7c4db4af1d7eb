# mediagate/enums.py
"""
Application Enums - Centralized enum definitions.

Kept free of imports so config, models and services can all depend on it.
"""

from enum import Enum


# =============================================================================
# JOB SYSTEMS
# =============================================================================


class UploadJobStatus(str, Enum):
    """Async upload job statuses. Transitions: pending -> uploading -> success|failed."""

    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    FAILED = "failed"


class WorkerType(str, Enum):
    """Worker names used for logging and status reporting."""

    ASYNC_UPLOAD_WORKER = "AsyncUploadWorker"
    JANITOR_WORKER = "JanitorWorker"


# =============================================================================
# MEDIA
# =============================================================================


class OutputFormat(str, Enum):
    """Encoders the transform engine can write."""

    WEBP = "webp"
    AVIF = "avif"
    JPEG = "jpeg"
    PNG = "png"


class ResponseStatus(str, Enum):
    """Status field of ingest response bodies."""

    OK = "ok"
    ERROR = "error"


# =============================================================================
# LOGGING
# =============================================================================


class LogLevel(str, Enum):
    """Log level constants for the logging system."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggerName(str, Enum):
    """Logger name constants for categorizing log entries."""

    # Pipeline loggers
    INGEST_PIPELINE = "ingest_pipeline"
    IMAGE_PIPELINE = "image_pipeline"

    # Service loggers
    PROFILE_SERVICE = "profile_service"
    STORAGE_SERVICE = "storage_service"

    # Worker loggers
    ASYNC_UPLOAD_WORKER = "async_upload_worker"
    JANITOR_WORKER = "janitor_worker"
    SCHEDULER = "scheduler"

    # System
    DATABASE = "database"
    SYSTEM = "system"
