"""Data transfer objects shared between the ingestion pipeline and its callers.

Hey future me - IngestionResult has NO identity. The wallpaper id is assigned when the
persistence layer writes the rows. Don't add an id field here!
"""

from dataclasses import dataclass, field

from wallspot.domain.ports.image_codec import ImageMetadata
from wallspot.domain.ports.storage_backend import StorageProviderName, StoredAsset
from wallspot.domain.value_objects.resolution import ResolutionSpec


@dataclass(frozen=True)
class RawUpload:
    """An uploaded file as the HTTP layer hands it over."""

    buffer: bytes = field(repr=False)
    content_type: str
    filename: str | None = None

    @property
    def byte_size(self) -> int:
        return len(self.buffer)


@dataclass(frozen=True)
class VariantOutcome:
    """Result of one catalog-sweep attempt: an asset OR an error, never both."""

    resolution: ResolutionSpec
    asset: StoredAsset | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.asset is not None

    @classmethod
    def success(cls, resolution: ResolutionSpec, asset: StoredAsset) -> "VariantOutcome":
        return cls(resolution=resolution, asset=asset)

    @classmethod
    def failure(cls, resolution: ResolutionSpec, error: str) -> "VariantOutcome":
        return cls(resolution=resolution, error=error)


@dataclass
class IngestionResult:
    """Everything the persistence layer needs to write wallpaper + resolution rows.

    variant_assets is in catalog order. Entries whose generation or upload failed are
    left out (their names are listed in failed_variants) - one bad rendition never
    fails the whole upload.
    """

    original_asset: StoredAsset
    thumbnail_asset: StoredAsset
    medium_asset: StoredAsset
    variant_assets: list[tuple[str, StoredAsset]]
    primary_color: str
    metadata: ImageMetadata
    slug: str
    provider_name: StorageProviderName
    # storage_providers row the backend was built from (None = default fallback)
    storage_provider_id: int | None = None
    failed_variants: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True if every catalog entry made it."""
        return not self.failed_variants

    def variant(self, name: str) -> StoredAsset | None:
        """Get a catalog variant by resolution name."""
        for variant_name, asset in self.variant_assets:
            if variant_name == name:
                return asset
        return None

    def all_assets(self) -> list[StoredAsset]:
        """Every uploaded asset (core three first, then catalog variants)."""
        return [
            self.original_asset,
            self.thumbnail_asset,
            self.medium_asset,
            *(asset for _, asset in self.variant_assets),
        ]


__all__ = ["IngestionResult", "RawUpload", "VariantOutcome"]
