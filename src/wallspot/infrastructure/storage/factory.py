"""Storage backend factory - provider name in, backend instance out.

One flat switch keyed by StorageProviderName, no class hierarchy tricks. Unknown names
(someone typed "S 3" into the admin table) fall back to the configured default provider
with a warning instead of failing uploads.
"""

import logging

from wallspot.config.settings import StorageSettings
from wallspot.domain.exceptions import ConfigurationError
from wallspot.domain.ports.image_codec import IImageCodec
from wallspot.domain.ports.storage_backend import IStorageBackend, StorageProviderName
from wallspot.infrastructure.storage.cloudinary_backend import CloudinaryStorageBackend
from wallspot.infrastructure.storage.local_backend import LocalStorageBackend
from wallspot.infrastructure.storage.s3_backend import S3StorageBackend

logger = logging.getLogger(__name__)


def resolve_provider_name(
    provider: StorageProviderName | str, default: StorageProviderName
) -> StorageProviderName:
    """Map a raw provider_name column value to the enum, falling back to default."""
    if isinstance(provider, StorageProviderName):
        return provider
    try:
        return StorageProviderName.parse(provider)
    except ValueError:
        logger.warning(
            "Unknown storage provider '%s', falling back to %s", provider, default.value
        )
        return default


def create_storage_backend(
    provider: StorageProviderName | str,
    settings: StorageSettings,
    codec: IImageCodec,
) -> IStorageBackend:
    """Build the backend for a provider name.

    Raises:
        ConfigurationError: S3 selected but no bucket configured
    """
    name = resolve_provider_name(provider, settings.default_provider)

    if name is StorageProviderName.CLOUDINARY:
        return CloudinaryStorageBackend(settings.cloudinary)
    if name is StorageProviderName.S3:
        if not settings.s3.bucket:
            raise ConfigurationError("S3 bucket not configured (WALLSPOT_STORAGE__S3__BUCKET)")
        return S3StorageBackend(settings.s3, codec)
    return LocalStorageBackend(settings.local, codec)
