# mediagate/services/image_pipeline/transform_engine.py
"""
Transform Engine

Produces the derived variants of a source image from an object's transform
list. Operations accumulate across entries: entry N is rendered with the
resize and blur of entries 1..N applied in order, each output encoded
independently from the decoded source.
"""

from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from ...enums import LoggerName, OutputFormat
from ...exceptions import InvalidOutputFormatError, TransformError
from ...models.profile_model import TransformSpec
from ...models.upload_model import DerivedFile, IncomingFile
from ...utils.staged_files import StagedFiles
from ..logger import get_service_logger
from .constants import (
    DEFAULT_QUALITY,
    DERIVED_NAME_SEPARATOR,
    OUTPUT_FORMAT_ALIASES,
    OUTPUT_MIME_TYPES,
    PIL_FORMATS,
)
from .image_operations import Blur, ImageOperation, ImagePipeline, Resize

logger = get_service_logger(LoggerName.IMAGE_PIPELINE)


def normalize_output_format(value: Optional[str]) -> Optional[OutputFormat]:
    """
    Parse an object's ``outputFormat``.

    Raises:
        InvalidOutputFormatError: If the value names no supported encoder
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in OUTPUT_FORMAT_ALIASES:
        return OUTPUT_FORMAT_ALIASES[key]
    try:
        return OutputFormat(key)
    except ValueError:
        supported = ", ".join(f.value for f in OutputFormat)
        raise InvalidOutputFormatError(
            f"Unsupported output format '{value}' (supported: {supported})"
        ) from None


def derived_path(source_path: Path, transform_name: str) -> Path:
    return source_path.with_name(
        f"{source_path.name}{DERIVED_NAME_SEPARATOR}{transform_name}"
    )


def operations_for(transform: TransformSpec) -> Tuple[ImageOperation, ...]:
    """Resize first, then blur"""
    operations: List[ImageOperation] = []
    if transform.width or transform.height:
        operations.append(Resize(width=transform.width, height=transform.height))
    if transform.blur:
        operations.append(Blur(radius=transform.blur))
    return tuple(operations)


class TransformEngine:
    """Writes derived image variants next to their source"""

    def _open(self, source: IncomingFile) -> ImagePipeline:
        try:
            return ImagePipeline.open(source.local_path)
        except (UnidentifiedImageError, OSError) as e:
            raise TransformError(
                f"Cannot decode {source.filename}: {e}"
            ) from e

    def _encoding_for(
        self, output_format: Optional[OutputFormat], source_format: Optional[str]
    ) -> Tuple[str, str]:
        """(Pillow format, mime type) of the outputs"""
        if output_format is not None:
            return PIL_FORMATS[output_format], OUTPUT_MIME_TYPES[output_format]

        mime_type = Image.MIME.get(source_format or "")
        if not mime_type:
            raise TransformError(f"Cannot re-encode source format '{source_format}'")
        return source_format, mime_type

    def transform(
        self,
        source: IncomingFile,
        transforms: Sequence[TransformSpec],
        output_format: Optional[str] = None,
        staged: Optional[StagedFiles] = None,
    ) -> List[DerivedFile]:
        """
        Render every named transform of ``source``.

        Args:
            source: The staged source image
            transforms: Ordered transform recipes; unnamed entries are skipped
            output_format: Explicit output format, else the source format
            staged: Tracker each output path is registered with before writing

        Returns:
            Derived files in transform order

        Raises:
            InvalidOutputFormatError: Before anything is written
            TransformError: If decoding or encoding fails
        """
        target_format = normalize_output_format(output_format)
        named = [t for t in transforms if t.name]
        if not named:
            return []

        pipeline = self._open(source)
        pil_format, mime_type = self._encoding_for(
            target_format, pipeline.source_format
        )

        derived_files = []
        for transform in named:
            pipeline = pipeline.then(*operations_for(transform))
            output_path = derived_path(source.local_path, transform.name)
            if staged is not None:
                staged.track(output_path)

            try:
                pipeline.save(output_path, pil_format, transform.quality)
            except (OSError, ValueError, KeyError) as e:
                raise TransformError(
                    f"Failed to encode transform '{transform.name}': {e}"
                ) from e

            derived_files.append(
                DerivedFile(
                    local_path=output_path,
                    derived_name=output_path.name,
                    mime_type=mime_type,
                )
            )
            logger.debug(
                f"Rendered {output_path.name} ({pil_format}, "
                f"{len(pipeline.operations)} operation(s))"
            )

        return derived_files

    def convert_source(
        self, source: IncomingFile, output_format: Optional[str]
    ) -> IncomingFile:
        """
        Re-encode the source in place when it is not already in ``output_format``.

        Returns:
            The source, with mime type and size updated if it was re-encoded
        """
        target_format = normalize_output_format(output_format)
        if target_format is None:
            return source

        pipeline = self._open(source)
        pil_format, mime_type = self._encoding_for(
            target_format, pipeline.source_format
        )
        if pipeline.source_format == pil_format:
            return source

        try:
            pipeline.save(source.local_path, pil_format, DEFAULT_QUALITY)
        except (OSError, ValueError, KeyError) as e:
            raise TransformError(
                f"Failed to re-encode {source.filename} as {target_format.value}: {e}"
            ) from e

        logger.debug(
            f"Re-encoded {source.filename} from {pipeline.source_format} to {pil_format}"
        )
        return replace(
            source,
            mime_type=mime_type,
            size_bytes=source.local_path.stat().st_size,
        )
