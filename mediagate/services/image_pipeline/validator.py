# mediagate/services/image_pipeline/validator.py
"""
Image Validator

Checks a source image against an object's dimension and ratio constraints
and labels it with the nearest small-integer aspect ratio.
"""

from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Optional, Tuple

from PIL import ExifTags, Image, UnidentifiedImageError

from ...config import settings
from ...exceptions import (
    InvalidHeightError,
    InvalidRatioError,
    InvalidWidthError,
    TransformError,
)
from ...models.profile_model import ImageConstraints
from .constants import TRANSPOSED_ORIENTATIONS


def read_dimensions(path: Path) -> Tuple[int, int]:
    """
    Read the displayed (width, height) without decoding pixel data.

    An EXIF orientation that rotates by 90 degrees swaps the stored sides.

    Raises:
        TransformError: If the file is not a readable image
    """
    try:
        with Image.open(path) as img:
            width, height = img.size
            orientation = img.getexif().get(ExifTags.Base.Orientation)
    except (UnidentifiedImageError, OSError) as e:
        raise TransformError(f"Cannot read image {Path(path).name}: {e}") from e

    if orientation in TRANSPOSED_ORIENTATIONS:
        return height, width
    return width, height


def parse_ratio(ratio: str) -> float:
    """``"3/2"`` -> 1.5"""
    numerator, denominator = (float(part) for part in ratio.split("/"))
    return numerator / denominator


def round_half_up(value: float, precision: int) -> Decimal:
    """Round the exact binary value of ``value``; ties go away from zero"""
    return Decimal(value).quantize(Decimal(1).scaleb(-precision), ROUND_HALF_UP)


def ratios_match(expected: float, actual: float, precision: int) -> bool:
    """Compare two ratios rounded half-up to ``precision`` decimal digits"""
    return round_half_up(expected, precision) == round_half_up(actual, precision)


def validate_dimensions(
    size: Tuple[int, int],
    constraints: Optional[ImageConstraints],
    precision: Optional[int] = None,
) -> None:
    """
    Apply every constraint to an image size; all must pass.

    Raises:
        InvalidWidthError: Width differs from ``width`` or is below ``minWidth``
        InvalidHeightError: Height differs from ``height`` or is below ``minHeight``
        InvalidRatioError: Ratio differs from ``ratio`` at the configured precision
    """
    if constraints is None:
        return

    if precision is None:
        precision = settings.ratio_precision

    width, height = size

    if constraints.width is not None and width != constraints.width:
        raise InvalidWidthError(
            f"Image width must be {constraints.width}px, got {width}px"
        )
    if constraints.height is not None and height != constraints.height:
        raise InvalidHeightError(
            f"Image height must be {constraints.height}px, got {height}px"
        )
    if constraints.min_width is not None and width < constraints.min_width:
        raise InvalidWidthError(
            f"Image width must be at least {constraints.min_width}px, got {width}px"
        )
    if constraints.min_height is not None and height < constraints.min_height:
        raise InvalidHeightError(
            f"Image height must be at least {constraints.min_height}px, got {height}px"
        )
    if constraints.ratio:
        expected = parse_ratio(constraints.ratio)
        if not ratios_match(expected, width / height, precision):
            raise InvalidRatioError(
                f"Image ratio must be {constraints.ratio.strip()}, got {width}/{height}"
            )


def validate_image(
    path: Path,
    constraints: Optional[ImageConstraints],
    precision: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Validate an image file against ``constraints``.

    Returns:
        The image (width, height)
    """
    size = read_dimensions(path)
    validate_dimensions(size, constraints, precision)
    return size


def nearest_ratio_for_size(
    width: int,
    height: int,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> str:
    """
    Closest ``"A:B"`` with ``A <= max_width`` and ``B <= max_height``.

    The search runs on the portrait orientation and the pair is reversed for
    landscape images, so rotating an image reverses its label. Ties keep the
    first match in (denominator, numerator) order.
    """
    if max_width is None:
        max_width = settings.aspect_ratio_max_width
    if max_height is None:
        max_height = settings.aspect_ratio_max_height

    rotated = width > height
    if rotated:
        width, height = height, width

    target = width / height
    best = (1, 1)
    best_difference = abs(1 - target)

    for i in range(1, max_height + 1):
        for j in range(1, max_width + 1):
            difference = abs(j / i - target)
            if difference < best_difference:
                best = (j, i)
                best_difference = difference

    if rotated:
        best = (best[1], best[0])
    return f"{best[0]}:{best[1]}"


def nearest_aspect_ratio(
    path: Path,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> str:
    """Label an image file with its nearest aspect ratio (display only)"""
    width, height = read_dimensions(path)
    return nearest_ratio_for_size(width, height, max_width, max_height)
