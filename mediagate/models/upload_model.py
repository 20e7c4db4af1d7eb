# mediagate/models/upload_model.py
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import UploadJobStatus


@dataclass(frozen=True)
class IncomingFile:
    """A file received by the HTTP layer and written to the staging directory."""

    local_path: Path
    original_filename: str
    mime_type: Optional[str]
    size_bytes: int
    field_name: str = "file"

    @property
    def filename(self) -> str:
        """Staging basename, used as the object name in storage"""
        return self.local_path.name

    @property
    def is_image(self) -> bool:
        return bool(self.mime_type) and self.mime_type.startswith("image/")


@dataclass(frozen=True)
class DerivedFile:
    """One transform output, written next to its source."""

    local_path: Path
    derived_name: str
    mime_type: str


class StagedFile(BaseModel):
    """A local file queued for delivery"""

    path: str
    filename: str
    mime_type: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_incoming(cls, incoming: IncomingFile) -> "StagedFile":
        return cls(
            path=str(incoming.local_path),
            filename=incoming.filename,
            mime_type=incoming.mime_type,
        )

    @classmethod
    def from_derived(cls, derived: DerivedFile) -> "StagedFile":
        return cls(
            path=str(derived.local_path),
            filename=derived.derived_name,
            mime_type=derived.mime_type,
        )


class UploadTarget(BaseModel):
    """Where and how a set of files is stored"""

    bucket_name: str
    base_path: str = ""
    region: str
    acl: Optional[str] = None
    cache_control: str
    cdn_url: Optional[str] = None
    cdn_exclude_path: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class AsyncUploadJobCreate(BaseModel):
    """Data required to queue a deferred upload"""

    key: str
    options: UploadTarget
    files: List[StagedFile]
    status: UploadJobStatus = UploadJobStatus.PENDING


class AsyncUploadJob(BaseModel):
    """Persisted deferred upload"""

    id: int
    key: str
    options: UploadTarget
    files: List[StagedFile]
    status: UploadJobStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    urls: Optional[List[str]] = None
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UploadResult(BaseModel):
    """Result of a synchronous ingest"""

    urls: List[str] = Field(default_factory=list)
    ratio: Optional[str] = None


class AsyncUploadResult(BaseModel):
    """Result of an ingest deferred to the async upload worker"""

    job_id: int
    key: str
    ratio: Optional[str] = None
