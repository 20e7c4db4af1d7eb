from .async_upload_operations import SyncAsyncUploadOperations
from .core import SyncDatabase, SyncDatabaseCore
from .exceptions import (
    AsyncUploadOperationError,
    DatabaseOperationError,
    ProfileOperationError,
)
from .profile_operations import SyncProfileOperations
from .schema import ensure_schema

__all__ = [
    "SyncAsyncUploadOperations",
    "SyncDatabase",
    "SyncDatabaseCore",
    "AsyncUploadOperationError",
    "DatabaseOperationError",
    "ProfileOperationError",
    "SyncProfileOperations",
    "ensure_schema",
]
