"""Storage Backend Port - where wallpaper renditions end up.

Hey future me - every backend (Cloudinary CDN, S3 bucket, local disk) implements this ONE
interface, and the ingestion pipeline only ever talks to the interface. Which backend is
active is decided at runtime by StorageSelector from the storage_providers table.

Capability differences you MUST keep in mind:
- get_url() transformation params (width/height/quality/format) are only honored by
  backends with supports_transformations=True (Cloudinary). S3/local return the static
  URL and silently ignore them.
- generate_resolutions() is a backend-specific shortcut (Cloudinary uploads once and
  builds transform URLs, S3 resizes locally and uploads each). The pipeline does NOT use
  it - it runs its own resize-then-upload loop to control the result shape.

Implementations:
- infrastructure/storage/cloudinary_backend.py
- infrastructure/storage/s3_backend.py
- infrastructure/storage/local_backend.py
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class StorageProviderName(str, Enum):
    """Provider names as stored in storage_providers.provider_name."""

    CLOUDINARY = "cloudinary"
    S3 = "s3"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: str) -> "StorageProviderName":
        """Case-insensitive lookup.

        Raises:
            ValueError: If the name is unknown
        """
        return cls(value.strip().lower())


@dataclass(frozen=True)
class StoredAsset:
    """Durable handle of an uploaded buffer - what the caller persists."""

    url: str
    provider_asset_id: str
    format: str | None = None
    width: int | None = None
    height: int | None = None
    byte_size: int | None = None


class IStorageBackend(ABC):
    """Interface for durable image storage."""

    @property
    @abstractmethod
    def provider_name(self) -> StorageProviderName:
        """Which provider this backend talks to."""
        ...

    @property
    @abstractmethod
    def supports_transformations(self) -> bool:
        """True if get_url() honors width/height/quality/format."""
        ...

    @abstractmethod
    async def upload(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
        image_format: str | None = None,
    ) -> StoredAsset:
        """Store a buffer under a key derived from folder + filename.

        A random hex filename is generated when filename is None.

        Raises:
            UploadError: On transport/auth/quota failure
        """
        ...

    @abstractmethod
    async def delete(self, provider_asset_id: str) -> None:
        """Remove an asset. Missing assets are not an error.

        Raises:
            UploadError: If the provider could not be reached
        """
        ...

    @abstractmethod
    def get_url(
        self,
        provider_asset_id: str,
        *,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
        image_format: str | None = None,
    ) -> str:
        """Build a retrieval URL (transform params may be ignored)."""
        ...

    @abstractmethod
    async def generate_resolutions(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
    ) -> list[StoredAsset]:
        """Upload an original plus the backend's fixed resolution set."""
        ...
