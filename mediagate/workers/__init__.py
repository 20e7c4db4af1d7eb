from .async_upload_worker import AsyncUploadWorker, DrainResult
from .base_worker import BaseWorker
from .janitor_worker import JanitorWorker
from .upload_scheduler import ASYNC_UPLOAD_JOB_ID, UploadScheduler

__all__ = [
    "AsyncUploadWorker",
    "DrainResult",
    "BaseWorker",
    "JanitorWorker",
    "ASYNC_UPLOAD_JOB_ID",
    "UploadScheduler",
]
