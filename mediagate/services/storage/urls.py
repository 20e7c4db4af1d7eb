# mediagate/services/storage/urls.py
"""
Object keys and public URLs.
"""

import mimetypes
import re
from typing import Optional
from urllib.parse import urlsplit

from ...enums import LoggerName
from ..logger import get_service_logger

logger = get_service_logger(LoggerName.STORAGE_SERVICE)

DEFAULT_REGION = "us-east-1"
FALLBACK_EXTENSION = "bin"

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/avif": "avif",
    "image/gif": "gif",
    "image/svg+xml": "svg",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/webm": "webm",
    "application/pdf": "pdf",
}

_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def extension_for(mime_type: Optional[str]) -> str:
    """File extension for a mime type, ``jpeg`` rendered as ``jpg``"""
    if not mime_type:
        return FALLBACK_EXTENSION
    if mime_type in EXTENSIONS:
        return EXTENSIONS[mime_type]
    guessed = mimetypes.guess_extension(mime_type, strict=False)
    if not guessed:
        return FALLBACK_EXTENSION
    return guessed.lstrip(".").replace("jpeg", "jpg")


def build_object_key(base_path: str, filename: str, mime_type: Optional[str]) -> str:
    return f"{base_path or ''}{filename}.{extension_for(mime_type)}"


def storage_url(
    bucket: str,
    region: Optional[str],
    key: str,
    endpoint_url: Optional[str] = None,
) -> str:
    """
    Public URL of a stored object.

    AWS: bucket-subdomain form, with the region segment outside us-east-1.
    S3-compatible endpoint: path-style ``{endpoint}/{bucket}/{key}``.
    """
    if endpoint_url:
        return f"{endpoint_url.rstrip('/')}/{bucket}/{key}"
    if not region or region == DEFAULT_REGION:
        return f"https://{bucket}.s3.amazonaws.com/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


def rewrite_to_cdn(
    url: str, cdn_url: Optional[str], exclude_path: Optional[str] = None
) -> str:
    """
    Serve ``url`` from a CDN host.

    The URL path is kept (minus ``exclude_path`` when it is a prefix), with
    duplicate slashes collapsed. Never raises: on a malformed URL the
    storage URL is returned unchanged.
    """
    if not cdn_url:
        return url

    try:
        path = urlsplit(url).path
        if exclude_path:
            prefix = "/" + exclude_path.strip("/")
            if path == prefix or path.startswith(prefix + "/"):
                path = path[len(prefix):]
        path = _DUPLICATE_SLASHES.sub("/", "/" + path)
        return cdn_url.rstrip("/") + path
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"CDN rewrite failed for {url}, keeping storage URL: {e}")
        return url
