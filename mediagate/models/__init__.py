from .profile_model import (
    BucketSpec,
    ImageConstraints,
    ObjectSpec,
    Profile,
    TransformSpec,
)
from .upload_model import (
    AsyncUploadJob,
    AsyncUploadJobCreate,
    AsyncUploadResult,
    DerivedFile,
    IncomingFile,
    StagedFile,
    UploadResult,
    UploadTarget,
)

__all__ = [
    "BucketSpec",
    "ImageConstraints",
    "ObjectSpec",
    "Profile",
    "TransformSpec",
    "AsyncUploadJob",
    "AsyncUploadJobCreate",
    "AsyncUploadResult",
    "DerivedFile",
    "IncomingFile",
    "StagedFile",
    "UploadResult",
    "UploadTarget",
]
