# mediagate/services/storage/delivery.py
"""
Delivery strategies.

Small files go up in one PUT; large files go up as a multipart upload with
sequential fixed-size parts, so memory is bounded by one part. A multipart
session is always aborted before an error leaves ``deliver``.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ...config import settings
from ...enums import LoggerName
from ...exceptions import MultipartProtocolError, StorageError
from ..logger import get_service_logger

logger = get_service_logger(LoggerName.STORAGE_SERVICE)


class DeliveryStrategy(ABC):
    """Sends one local file to one object key"""

    @abstractmethod
    def deliver(self, client: Any, path: Path, params: Dict[str, Any]) -> None:
        """
        Upload ``path``.

        Args:
            client: boto3 S3 client
            path: Local file
            params: ``Bucket``, ``Key``, ``ContentType``, ``CacheControl`` and
                optional ``ACL``
        """
        pass


class DirectPutDelivery(DeliveryStrategy):
    def deliver(self, client: Any, path: Path, params: Dict[str, Any]) -> None:
        with open(path, "rb") as f:
            body = f.read()

        response = client.put_object(Body=body, **params)
        if not response.get("ETag"):
            raise StorageError(
                f"PUT of {params['Key']} returned no ETag",
                code="PUT_UPLOAD_UNEXPECTED_RESPONSE",
            )


class MultipartDelivery(DeliveryStrategy):
    def __init__(self, chunk_size: Optional[int] = None):
        self.chunk_size = chunk_size or settings.multipart_chunk_size_bytes

    def iter_chunks(self, path: Path) -> Iterator[bytes]:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk

    def deliver(self, client: Any, path: Path, params: Dict[str, Any]) -> None:
        bucket, key = params["Bucket"], params["Key"]

        response = client.create_multipart_upload(**params)
        upload_id = response.get("UploadId")
        if not upload_id:
            raise MultipartProtocolError(f"Multipart upload of {key} returned no UploadId")

        logger.debug(f"Multipart upload created for {key}, UploadId: {upload_id}")

        parts: List[Dict[str, Any]] = []
        try:
            for part_number, chunk in enumerate(self.iter_chunks(path), start=1):
                part = client.upload_part(
                    Bucket=bucket,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    Body=chunk,
                    ContentLength=len(chunk),
                )
                etag = part.get("ETag")
                if not etag:
                    raise MultipartProtocolError(
                        f"Part {part_number} of {key} returned no ETag"
                    )
                parts.append({"PartNumber": part_number, "ETag": etag})
                logger.debug(
                    f"Uploaded part {part_number} of {key} "
                    f"({len(chunk) / 1024 / 1024:.2f} MB)"
                )

            result = client.complete_multipart_upload(
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
            if not result.get("ETag"):
                raise MultipartProtocolError(
                    f"Completing multipart upload of {key} returned no ETag"
                )
        except Exception:
            self._abort(client, bucket, key, upload_id)
            raise

        logger.info(f"Multipart upload of {key} completed ({len(parts)} parts)")

    def _abort(self, client: Any, bucket: str, key: str, upload_id: str) -> None:
        try:
            client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)
            logger.warning(f"Aborted multipart upload of {key} ({upload_id})")
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to abort multipart upload {upload_id} of {key}: {e}")


def select_delivery_strategy(
    size_bytes: int,
    threshold_bytes: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> DeliveryStrategy:
    """Single PUT up to the threshold (inclusive), multipart above it"""
    if threshold_bytes is None:
        threshold_bytes = settings.multipart_threshold_bytes
    if size_bytes <= threshold_bytes:
        return DirectPutDelivery()
    return MultipartDelivery(chunk_size)
