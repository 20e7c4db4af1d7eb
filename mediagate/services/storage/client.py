# mediagate/services/storage/client.py
"""
S3 client construction.

Works against AWS S3 (no endpoint) and S3-compatible providers such as
MinIO or R2 (``S3_ENDPOINT_URL`` set).
"""

from typing import Optional

import boto3
from botocore.client import Config

from ...config import settings


def get_s3_client(
    region_name: Optional[str] = None, *, endpoint_url: Optional[str] = None
):
    """
    Build an S3 client for a region.

    Args:
        region_name: Bucket region; the configured default when empty
        endpoint_url: Override of ``settings.s3_endpoint_url``
    """
    endpoint = (endpoint_url or settings.s3_endpoint_url or "").strip() or None
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=settings.s3_access_key_id,
        aws_secret_access_key=settings.s3_secret_access_key,
        region_name=region_name or settings.default_region,
        config=Config(
            signature_version="s3v4",
            connect_timeout=settings.s3_connect_timeout_seconds,
            read_timeout=settings.s3_read_timeout_seconds,
            retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
            s3={"addressing_style": settings.s3_addressing_style},
        ),
    )
