# mediagate/services/storage/uploader.py
"""
Storage Uploader

Delivers a list of staged files to one bucket, returns their public (or CDN)
URLs in file order and removes the local files once all were delivered.
"""

import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from ...config import settings
from ...enums import LoggerName
from ...exceptions import StorageError
from ...models.profile_model import ObjectSpec, Profile
from ...models.upload_model import StagedFile, UploadTarget
from ...utils.staged_files import delete_if_exists
from ..logger import get_service_logger
from .client import get_s3_client
from .delivery import select_delivery_strategy
from .urls import build_object_key, rewrite_to_cdn, storage_url

logger = get_service_logger(LoggerName.STORAGE_SERVICE)

ClientFactory = Callable[[Optional[str]], Any]


def build_upload_target(profile: Profile, object_spec: ObjectSpec) -> UploadTarget:
    """Storage options of an object: profile bucket plus object overrides"""
    bucket = profile.bucket
    max_age = object_spec.max_age or settings.default_max_age_seconds
    return UploadTarget(
        bucket_name=bucket.name,
        base_path=(bucket.base_path or "") + (object_spec.bucket_path or ""),
        region=bucket.region or settings.default_region,
        acl=object_spec.acl or settings.default_acl,
        cache_control=f"max-age={max_age}",
        cdn_url=bucket.cdn_url,
        cdn_exclude_path=bucket.cdn_exclude_path,
    )


class StorageUploader:
    """
    Uploads staged files with the strategy their size calls for.

    Clients are created per region on first use and reused. The default
    client factory targets ``endpoint_url``, the same endpoint URLs are built
    from.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        endpoint_url: Optional[str] = None,
        multipart_threshold_bytes: Optional[int] = None,
        multipart_chunk_size_bytes: Optional[int] = None,
    ):
        self.endpoint_url = endpoint_url or settings.s3_endpoint_url
        self.client_factory = client_factory or partial(
            get_s3_client, endpoint_url=self.endpoint_url
        )
        self.multipart_threshold_bytes = (
            multipart_threshold_bytes or settings.multipart_threshold_bytes
        )
        self.multipart_chunk_size_bytes = (
            multipart_chunk_size_bytes or settings.multipart_chunk_size_bytes
        )
        self._clients: Dict[Optional[str], Any] = {}
        self._clients_lock = threading.Lock()

    def _client_for(self, region: Optional[str]) -> Any:
        with self._clients_lock:
            if region not in self._clients:
                self._clients[region] = self.client_factory(region)
            return self._clients[region]

    def deliver(
        self,
        target: UploadTarget,
        files: Sequence[StagedFile],
        remove_local: bool = True,
    ) -> List[str]:
        """
        Upload ``files`` in order.

        Args:
            target: Bucket, key prefix and object headers
            files: Local files to upload
            remove_local: Delete the local files after every upload succeeded

        Returns:
            One URL per file, in file order

        Raises:
            StorageError: On the first failed upload (local files are kept)
        """
        if not files:
            return []

        client = self._client_for(target.region)
        urls = []

        for staged in files:
            key = build_object_key(target.base_path, staged.filename, staged.mime_type)
            params: Dict[str, Any] = {
                "Bucket": target.bucket_name,
                "Key": key,
                "ContentType": staged.mime_type,
                "CacheControl": target.cache_control,
            }
            if target.acl:
                params["ACL"] = target.acl

            try:
                path = Path(staged.path)
                size = path.stat().st_size
                strategy = select_delivery_strategy(
                    size,
                    self.multipart_threshold_bytes,
                    self.multipart_chunk_size_bytes,
                )
                strategy.deliver(client, path, params)
            except StorageError:
                logger.error(f"Upload failed for {staged.filename}")
                raise
            except (ClientError, BotoCoreError, OSError) as e:
                logger.error(f"Upload failed for {staged.filename}: {e}")
                raise StorageError(f"Upload of {key} failed: {e}") from e

            url = storage_url(target.bucket_name, target.region, key, self.endpoint_url)
            urls.append(rewrite_to_cdn(url, target.cdn_url, target.cdn_exclude_path))
            logger.debug(f"Uploaded {key} ({type(strategy).__name__}, {size} bytes)")

        if remove_local:
            for staged in files:
                try:
                    delete_if_exists(staged.path)
                except OSError as e:
                    logger.warning(f"Failed to remove delivered file {staged.path}: {e}")

        logger.info(f"Delivered {len(urls)} file(s) to bucket {target.bucket_name}")
        return urls
