# mediagate/services/image_pipeline/constants.py
"""
Image Pipeline Constants
"""

from ...enums import OutputFormat

# Accepted spellings of output formats that are not enum values
OUTPUT_FORMAT_ALIASES = {"jpg": OutputFormat.JPEG}

# Pillow format name per output format
PIL_FORMATS = {
    OutputFormat.WEBP: "WEBP",
    OutputFormat.AVIF: "AVIF",
    OutputFormat.JPEG: "JPEG",
    OutputFormat.PNG: "PNG",
}

OUTPUT_MIME_TYPES = {
    OutputFormat.WEBP: "image/webp",
    OutputFormat.AVIF: "image/avif",
    OutputFormat.JPEG: "image/jpeg",
    OutputFormat.PNG: "image/png",
}

# Pillow formats that cannot store an alpha channel
FORMATS_WITHOUT_ALPHA = {"JPEG", "BMP"}

# Encoder quality (1-100)
DEFAULT_QUALITY = 100
MAX_PALETTE_COLORS = 256

# Derived files are named {source}_{transform}
DERIVED_NAME_SEPARATOR = "_"

# Pillow formats saved with the encoder of another format
# (MPO is a JPEG carrying extra frames)
SAVE_FORMATS = {"MPO": "JPEG"}

# EXIF orientations that rotate the image by 90 or 270 degrees
TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}
