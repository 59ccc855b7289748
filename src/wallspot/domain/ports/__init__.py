"""Domain ports (interfaces) - infrastructure implements these."""

from wallspot.domain.ports.image_codec import (
    FALLBACK_COLOR,
    ColorExtraction,
    GeneratedVariant,
    IImageCodec,
    ImageMetadata,
    ValidationLimits,
    ValidationReport,
)
from wallspot.domain.ports.storage_backend import (
    IStorageBackend,
    StoredAsset,
    StorageProviderName,
)
from wallspot.domain.ports.storage_config import (
    IStorageProviderConfig,
    StorageProviderRecord,
)

__all__ = [
    "FALLBACK_COLOR",
    "ColorExtraction",
    "GeneratedVariant",
    "IImageCodec",
    "IStorageBackend",
    "IStorageProviderConfig",
    "ImageMetadata",
    "StorageProviderName",
    "StorageProviderRecord",
    "StoredAsset",
    "ValidationLimits",
    "ValidationReport",
]
