"""Local filesystem storage backend (development / single-box installs)."""

import asyncio
import logging
from pathlib import Path

from wallspot.config.settings import LocalStorageSettings
from wallspot.domain.exceptions import InvalidImageError, UploadError
from wallspot.domain.ports.image_codec import IImageCodec
from wallspot.domain.ports.storage_backend import (
    IStorageBackend,
    StoredAsset,
    StorageProviderName,
)
from wallspot.infrastructure.storage.common import build_object_key, upload_resized_set

logger = logging.getLogger(__name__)


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


class LocalStorageBackend(IStorageBackend):
    """Writes renditions below root_dir, served by a static mount."""

    def __init__(self, settings: LocalStorageSettings, codec: IImageCodec) -> None:
        self._root = Path(settings.root_dir).expanduser().resolve()
        self._public_base_url = settings.public_base_url.rstrip("/")
        self._codec = codec

    @property
    def provider_name(self) -> StorageProviderName:
        return StorageProviderName.LOCAL

    @property
    def supports_transformations(self) -> bool:
        return False

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        # No "../" escapes out of the media root
        if not path.is_relative_to(self._root):
            raise UploadError(self.provider_name.value, f"Key escapes storage root: {key}")
        return path

    async def upload(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
        image_format: str | None = None,
    ) -> StoredAsset:
        key = build_object_key(folder, filename, image_format)
        path = self._path_for(key)
        try:
            await asyncio.to_thread(_write_file, path, buffer)
        except OSError as e:
            raise UploadError(self.provider_name.value, str(e)) from e

        try:
            metadata = await self._codec.decode_metadata(buffer)
        except InvalidImageError:
            metadata = None

        return StoredAsset(
            url=f"{self._public_base_url}/{key}",
            provider_asset_id=key,
            format=image_format or (metadata.format if metadata else None),
            width=metadata.width if metadata else None,
            height=metadata.height if metadata else None,
            byte_size=len(buffer),
        )

    async def delete(self, provider_asset_id: str) -> None:
        path = self._path_for(provider_asset_id)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
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
        return f"{self._public_base_url}/{provider_asset_id}"

    async def generate_resolutions(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
    ) -> list[StoredAsset]:
        return await upload_resized_set(self, self._codec, buffer, folder=folder, filename=filename)
