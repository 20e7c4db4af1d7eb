"""
Image Pipeline Module

Validation and derived-variant generation for uploaded images.
"""

from .image_operations import Blur, ImagePipeline, Resize, encode_image
from .transform_engine import TransformEngine, normalize_output_format
from .validator import (
    nearest_aspect_ratio,
    nearest_ratio_for_size,
    read_dimensions,
    validate_dimensions,
    validate_image,
)

__all__ = [
    "Blur",
    "ImagePipeline",
    "Resize",
    "encode_image",
    "TransformEngine",
    "normalize_output_format",
    "nearest_aspect_ratio",
    "nearest_ratio_for_size",
    "read_dimensions",
    "validate_dimensions",
    "validate_image",
]
