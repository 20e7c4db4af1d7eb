# mediagate/services/image_pipeline/image_operations.py
"""
Image Operations

Pillow primitives used by the transform engine: an immutable pipeline value
(decoded source plus the operations applied to it), the resize and blur
operations, and format-aware encoding.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image, ImageFilter, ImageOps

from ...models.profile_model import Quality
from .constants import FORMATS_WITHOUT_ALPHA, MAX_PALETTE_COLORS, SAVE_FORMATS

ALPHA_MODES = ("RGBA", "LA", "PA")
WORKING_MODES = ("RGB", "RGBA", "L")


def has_alpha(image: Image.Image) -> bool:
    return image.mode in ALPHA_MODES or (
        image.mode == "P" and "transparency" in image.info
    )


def to_working_mode(image: Image.Image) -> Image.Image:
    """Convert palette and exotic modes to RGB(A) so filters can run"""
    if image.mode in WORKING_MODES:
        return image
    return image.convert("RGBA" if has_alpha(image) else "RGB")


@dataclass(frozen=True)
class Resize:
    """
    Resize to a box.

    Both sides given: exact size, aspect ratio not preserved. One side given:
    the other is scaled proportionally (rounded, at least 1px).
    """

    width: Optional[int] = None
    height: Optional[int] = None

    def target_size(self, size: Tuple[int, int]) -> Tuple[int, int]:
        source_width, source_height = size

        if self.width and self.height:
            return self.width, self.height
        if self.width:
            return self.width, max(1, round(source_height * self.width / source_width))
        if self.height:
            return max(1, round(source_width * self.height / source_height)), self.height
        return size

    def apply(self, image: Image.Image) -> Image.Image:
        size = self.target_size(image.size)
        if size == image.size:
            return image
        return image.resize(size, Image.Resampling.LANCZOS)


@dataclass(frozen=True)
class Blur:
    """Gaussian blur with a pixel radius"""

    radius: float

    def apply(self, image: Image.Image) -> Image.Image:
        if self.radius <= 0:
            return image
        return image.filter(ImageFilter.GaussianBlur(radius=self.radius))


ImageOperation = Union[Resize, Blur]


@dataclass(frozen=True)
class ImagePipeline:
    """
    A decoded source image and the ordered operations applied to it.

    ``then()`` returns a new pipeline; the source is never modified, so any
    pipeline can be rendered at any time and renders the same pixels.
    """

    source: Image.Image
    source_format: Optional[str] = None
    operations: Tuple[ImageOperation, ...] = ()

    @classmethod
    def open(cls, path: Path) -> "ImagePipeline":
        """
        Decode an image file upright (EXIF orientation applied).

        ``source_format`` is the Pillow format outputs are saved with, so an
        MPO camera JPEG reports ``JPEG``.

        Raises:
            PIL.UnidentifiedImageError: If the file is not a readable image
            OSError: If the file cannot be read or decoded
        """
        with Image.open(path) as img:
            img.load()
            source_format = SAVE_FORMATS.get(img.format, img.format)
            source = to_working_mode(ImageOps.exif_transpose(img)).copy()
        return cls(source=source, source_format=source_format)

    def then(self, *operations: ImageOperation) -> "ImagePipeline":
        return replace(self, operations=self.operations + tuple(operations))

    def render(self) -> Image.Image:
        image = self.source
        for operation in self.operations:
            image = operation.apply(image)
        return image

    def save(self, output_path: Path, pil_format: str, quality: Quality) -> None:
        encode_image(self.render(), output_path, pil_format, quality)


def scalar_quality(quality: Quality) -> int:
    """Upper bound of a quality range, or the quality itself"""
    return quality[1] if isinstance(quality, tuple) else quality


def palette_colors(quality: Quality) -> int:
    return max(2, round(MAX_PALETTE_COLORS * scalar_quality(quality) / 100))


def encode_image(
    image: Image.Image, output_path: Path, pil_format: str, quality: Quality
) -> None:
    """
    Encode ``image`` to ``output_path``.

    Lossy encoders receive ``quality`` directly. PNG below 100 is reduced to
    a palette sized by quality (a range uses its upper bound).
    """
    if pil_format in FORMATS_WITHOUT_ALPHA:
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
    else:
        image = to_working_mode(image)

    save_kwargs = {}
    if pil_format == "PNG":
        if scalar_quality(quality) < 100:
            if image.mode == "L":
                image = image.convert("RGB")
            image = image.quantize(
                colors=palette_colors(quality), method=Image.Quantize.FASTOCTREE
            )
        save_kwargs["optimize"] = True
    elif pil_format == "JPEG":
        save_kwargs.update(quality=scalar_quality(quality), optimize=True)
    elif pil_format in ("WEBP", "AVIF"):
        save_kwargs["quality"] = scalar_quality(quality)

    image.save(output_path, pil_format, **save_kwargs)
