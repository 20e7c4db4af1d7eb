"""
Storage Module

Delivery of staged files to S3 or S3-compatible object storage.
"""

from .client import get_s3_client
from .delivery import (
    DeliveryStrategy,
    DirectPutDelivery,
    MultipartDelivery,
    select_delivery_strategy,
)
from .uploader import StorageUploader, build_upload_target
from .urls import build_object_key, extension_for, rewrite_to_cdn, storage_url

__all__ = [
    "get_s3_client",
    "DeliveryStrategy",
    "DirectPutDelivery",
    "MultipartDelivery",
    "select_delivery_strategy",
    "StorageUploader",
    "build_upload_target",
    "build_object_key",
    "extension_for",
    "rewrite_to_cdn",
    "storage_url",
]
