"""S3 storage backend - plain bucket object storage.

Hey future me - boto3 is SYNC. Every client call goes through asyncio.to_thread so a slow
PutObject doesn't block other uploads. The client itself is thread-safe, so one lazily
created client is shared by all those threads.

S3 can't transform on the fly: get_url() ignores width/height/quality/format and
generate_resolutions() resizes locally (via the codec) before uploading each size.
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from wallspot.config.settings import S3Settings
from wallspot.domain.exceptions import InvalidImageError, UploadError
from wallspot.domain.ports.image_codec import IImageCodec, ImageMetadata
from wallspot.domain.ports.storage_backend import (
    IStorageBackend,
    StoredAsset,
    StorageProviderName,
)
from wallspot.infrastructure.storage.common import (
    build_object_key,
    content_type_for,
    upload_resized_set,
)

logger = logging.getLogger(__name__)


class S3StorageBackend(IStorageBackend):
    """Stores renditions as objects in one bucket."""

    def __init__(self, settings: S3Settings, codec: IImageCodec, client: Any | None = None) -> None:
        """Initialize backend.

        Args:
            settings: Bucket, region and credentials
            codec: Used to read dimensions and to resize for generate_resolutions()
            client: Optional pre-built boto3 S3 client (tests pass a mock)
        """
        self._settings = settings
        self._codec = codec
        self._client = client

    @property
    def provider_name(self) -> StorageProviderName:
        return StorageProviderName.S3

    @property
    def supports_transformations(self) -> bool:
        return False

    def _get_client(self) -> Any:
        # boto3 raises ValueError for a malformed endpoint_url, callers wrap it
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self._settings.region,
                endpoint_url=self._settings.endpoint_url,
                aws_access_key_id=self._settings.access_key_id,
                aws_secret_access_key=self._settings.secret_access_key,
            )
        return self._client

    def _public_url(self, key: str) -> str:
        if self._settings.public_base_url:
            return f"{self._settings.public_base_url.rstrip('/')}/{key}"
        return f"https://{self._settings.bucket}.s3.{self._settings.region}.amazonaws.com/{key}"

    async def upload(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
        image_format: str | None = None,
    ) -> StoredAsset:
        if not self._settings.bucket:
            raise UploadError(self.provider_name.value, "S3 bucket not configured")

        metadata: ImageMetadata | None
        try:
            metadata = await self._codec.decode_metadata(buffer)
        except InvalidImageError:
            # Still store it - S3 doesn't care, we just can't report dimensions
            metadata = None
        stored_format = image_format or (metadata.format if metadata else None)
        key = build_object_key(folder, filename, stored_format)

        try:
            client = self._get_client()
            await asyncio.to_thread(
                client.put_object,
                Bucket=self._settings.bucket,
                Key=key,
                Body=buffer,
                ContentType=content_type_for(stored_format),
            )
        except (BotoCoreError, ClientError, ValueError) as e:
            raise UploadError(self.provider_name.value, str(e)) from e

        logger.debug("Uploaded s3://%s/%s (%d bytes)", self._settings.bucket, key, len(buffer))
        return StoredAsset(
            url=self._public_url(key),
            provider_asset_id=key,
            format=stored_format,
            width=metadata.width if metadata else None,
            height=metadata.height if metadata else None,
            byte_size=len(buffer),
        )

    async def delete(self, provider_asset_id: str) -> None:
        # S3 DeleteObject succeeds for missing keys, nothing to special-case
        try:
            client = self._get_client()
            await asyncio.to_thread(
                client.delete_object, Bucket=self._settings.bucket, Key=provider_asset_id
            )
        except (BotoCoreError, ClientError, ValueError) as e:
            raise UploadError(self.provider_name.value, str(e), operation="delete") from e

    def get_url(
        self,
        provider_asset_id: str,
        *,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
        image_format: str | None = None,
    ) -> str:
        # Transformation params ignored - the bucket serves bytes as stored
        return self._public_url(provider_asset_id)

    async def generate_resolutions(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
    ) -> list[StoredAsset]:
        return await upload_resized_set(self, self._codec, buffer, folder=folder, filename=filename)
