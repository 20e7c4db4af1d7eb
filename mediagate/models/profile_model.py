# mediagate/models/profile_model.py
"""
Profile models.

A profile document is stored as JSON and parsed on every lookup; field names
follow the stored (camelCase) document, exposed as snake_case attributes.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Quality = Union[int, Tuple[int, int]]


class BucketSpec(BaseModel):
    """Storage target of a profile"""

    name: str = Field(..., min_length=1)
    base_path: str = Field(default="", alias="basePath")
    region: Optional[str] = None
    cdn_url: Optional[str] = Field(default=None, alias="cdnUrl")
    cdn_exclude_path: Optional[str] = Field(default=None, alias="cdnExcludePath")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ImageConstraints(BaseModel):
    """Dimension and ratio constraints applied to a source image"""

    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    min_width: Optional[int] = Field(default=None, gt=0, alias="minWidth")
    min_height: Optional[int] = Field(default=None, gt=0, alias="minHeight")
    ratio: Optional[str] = Field(default=None, pattern=r"^\s*\d+(\.\d+)?\s*/\s*\d+(\.\d+)?\s*$")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("ratio")
    @classmethod
    def validate_ratio_sides(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and any(float(side) == 0 for side in v.split("/")):
            raise ValueError(f"ratio '{v.strip()}' has a zero side")
        return v


class TransformSpec(BaseModel):
    """One named derived-image recipe"""

    name: str = ""
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    blur: Optional[float] = Field(default=None, ge=0)
    quality: Quality = 100

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, v: Quality) -> Quality:
        """Quality is 1-100, or a (min, max) pair for indexed-colour encoders"""
        values = v if isinstance(v, tuple) else (v,)
        for value in values:
            if not 1 <= value <= 100:
                raise ValueError(f"quality must be between 1 and 100, got {value}")
        if isinstance(v, tuple) and v[0] > v[1]:
            raise ValueError(f"quality range {v} is inverted")
        return v


class ObjectSpec(BaseModel):
    """Upload rules of one object kind within a profile (e.g. avatar)"""

    bucket_path: str = Field(default="", alias="bucketPath")
    mime_types: List[str] = Field(..., min_length=1, alias="mimeTypes")
    output_format: Optional[str] = Field(default=None, alias="outputFormat")
    max_age: Optional[int] = Field(default=None, ge=0, alias="maxAge")
    acl: Optional[str] = None
    is_async: bool = Field(default=False, alias="async")
    constraints: Optional[ImageConstraints] = None
    transforms: List[TransformSpec] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("transforms", mode="before")
    @classmethod
    def normalize_transforms(cls, v: Any) -> Any:
        """Accept the keyed mapping form ``{name: recipe}`` as well as a list"""
        if v is None:
            return []
        if isinstance(v, dict):
            return [{**(recipe or {}), "name": name} for name, recipe in v.items()]
        return v

    @field_validator("transforms")
    @classmethod
    def validate_unique_names(cls, v: List[TransformSpec]) -> List[TransformSpec]:
        seen = set()
        for transform in v:
            if not transform.name:
                continue
            if transform.name in seen:
                raise ValueError(f"duplicate transform name '{transform.name}'")
            seen.add(transform.name)
        return v

    def accepts(self, mime_type: Optional[str]) -> bool:
        """Whether a file of this mime type may be uploaded"""
        return bool(mime_type) and mime_type in self.mime_types


class Profile(BaseModel):
    """Named bundle of a storage target and its object definitions"""

    name: str
    bucket: BucketSpec
    objects: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def has_object(self, object_key: str) -> bool:
        return object_key in self.objects and self.objects[object_key] is not None

    def get_object(self, object_key: str) -> ObjectSpec:
        """
        Parse the object definition stored under ``object_key``.

        Objects are parsed lazily so one malformed entry does not make the
        whole profile unusable.

        Raises:
            KeyError: If the profile has no such object
            pydantic.ValidationError: If the stored definition is invalid
        """
        if not self.has_object(object_key):
            raise KeyError(object_key)
        return ObjectSpec.model_validate(self.objects[object_key])
