# mediagate/services/profile_service.py
"""
Profile Service - resolves the object definition an upload is governed by.

Profiles are read from the metadata store on every call.
"""

from typing import Optional, Tuple

from pydantic import ValidationError

from ..config import settings
from ..database.exceptions import ProfileOperationError
from ..database.profile_operations import SyncProfileOperations
from ..enums import LoggerName
from ..exceptions import (
    InvalidObjectSpecError,
    MetadataStoreError,
    ObjectNotFoundError,
    ProfileNotFoundError,
)
from ..models.profile_model import ObjectSpec, Profile
from .logger import get_service_logger

logger = get_service_logger(LoggerName.PROFILE_SERVICE)


class SyncProfileService:
    """
    Resolves ``(profile name, object key)`` into a validated ``ObjectSpec``.

    Raises request errors only: a missing profile, a missing object, or a
    stored object definition that does not parse.
    """

    def __init__(
        self,
        profile_ops: SyncProfileOperations,
        default_profile: Optional[str] = None,
    ):
        self.profile_ops = profile_ops
        self.default_profile = default_profile or settings.default_profile

    def get_profile(self, profile_name: Optional[str] = None) -> Profile:
        """
        Load a profile by name.

        Args:
            profile_name: Profile name; the default profile when empty

        Raises:
            ProfileNotFoundError: No profile is stored under that name
            InvalidObjectSpecError: The stored profile document is malformed
            MetadataStoreError: The store could not be queried
        """
        name = profile_name or self.default_profile

        try:
            document = self.profile_ops.get_profile_document(name)
        except ProfileOperationError as e:
            raise MetadataStoreError(str(e)) from e

        if document is None:
            raise ProfileNotFoundError(f"Profile '{name}' does not exist")

        try:
            return Profile.model_validate(document)
        except ValidationError as e:
            raise InvalidObjectSpecError(
                f"Profile '{name}' is malformed: {e.errors()[0]['msg']}"
            ) from e

    def resolve(
        self, profile_name: Optional[str], object_key: str
    ) -> Tuple[Profile, ObjectSpec]:
        """
        Resolve the object definition for an upload.

        Args:
            profile_name: Profile name; the default profile when empty
            object_key: Object kind within the profile (e.g. ``avatar``)

        Returns:
            Tuple of (profile, object spec)
        """
        profile = self.get_profile(profile_name)

        if not object_key or not profile.has_object(object_key):
            raise ObjectNotFoundError(
                f"Profile '{profile.name}' has no object '{object_key}'"
            )

        try:
            object_spec = profile.get_object(object_key)
        except ValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            raise InvalidObjectSpecError(
                f"Object '{object_key}' of profile '{profile.name}' is invalid "
                f"({location}: {error['msg']})"
            ) from e

        logger.debug(f"Resolved object '{object_key}' from profile '{profile.name}'")
        return profile, object_spec
