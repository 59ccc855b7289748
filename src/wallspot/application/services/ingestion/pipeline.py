"""Ingestion Pipeline - raw upload in, uploaded renditions + metadata out.

Hey future me - this is the heart of the upload flow. Order matters:

1. validate      -> ValidationError with ALL violations, nothing touched yet
2. metadata      -> width/height/format + average color (color never fails)
3. slug          -> unique base filename for every rendition of this upload
4. backend       -> whatever the StorageSelector says is active right now
5. core uploads  -> original + thumbnail + medium IN PARALLEL, all three must land
6. catalog sweep -> every RESOLUTION_CATALOG entry, failures logged and skipped
7. assemble      -> IngestionResult (no DB writes here!)

The pipeline never writes to the database and never deletes anything it uploaded.
Deciding what to do with the result (persist, or compensate when persisting fails)
is the caller's job - see UploadWallpaperUseCase.
"""

import asyncio
import dataclasses
import logging
import time
from collections.abc import Callable, Collection, Sequence

from wallspot.application.services.storage_selector import StorageSelector
from wallspot.domain.dtos import IngestionResult, RawUpload, VariantOutcome
from wallspot.domain.exceptions import DomainException, ValidationError
from wallspot.domain.ports.image_codec import (
    GeneratedVariant,
    IImageCodec,
    ImageMetadata,
    ValidationLimits,
)
from wallspot.domain.ports.storage_backend import IStorageBackend, StoredAsset
from wallspot.domain.value_objects.resolution import (
    MEDIUM_PRESET,
    RESOLUTION_CATALOG,
    THUMBNAIL_PRESET,
    ResolutionSpec,
    VariantPreset,
)
from wallspot.domain.value_objects.slug import slug_with_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BASE_FOLDER = "wallpapers"
DEFAULT_SWEEP_CONCURRENCY = 3


def _with_dimensions(
    asset: StoredAsset, width: int, height: int, byte_size: int, image_format: str
) -> StoredAsset:
    """Fill in what the backend did not report (S3/local report less than Cloudinary)."""
    return dataclasses.replace(
        asset,
        width=asset.width if asset.width is not None else width,
        height=asset.height if asset.height is not None else height,
        byte_size=asset.byte_size if asset.byte_size is not None else byte_size,
        format=asset.format or image_format,
    )


class IngestionPipeline:
    """Validates, renders and uploads one wallpaper per ingest() call.

    Stateless between calls - safe to share one instance across requests.
    """

    def __init__(
        self,
        codec: IImageCodec,
        selector: StorageSelector,
        limits: ValidationLimits,
        *,
        name_provider: Callable[[str], str] = slug_with_timestamp,
        catalog: Sequence[ResolutionSpec] = RESOLUTION_CATALOG,
        sweep_concurrency: int = DEFAULT_SWEEP_CONCURRENCY,
        allowed_content_types: Collection[str] | None = None,
        base_folder: str = DEFAULT_BASE_FOLDER,
    ) -> None:
        """Initialize pipeline.

        Args:
            codec: Image codec adapter
            selector: Resolves the active storage backend
            limits: Validation constraints (size, dimensions, formats)
            name_provider: title -> unique filename base, once per upload
            catalog: Resolutions generated in the sweep, in result order
            sweep_concurrency: Max catalog entries rendered/uploaded at once
            allowed_content_types: Declared MIME types accepted by ingest_upload()
            base_folder: Top-level folder all renditions go under
        """
        if sweep_concurrency < 1:
            raise ValueError("sweep_concurrency must be >= 1")
        self._codec = codec
        self._selector = selector
        self._limits = limits
        self._name_provider = name_provider
        self._catalog = tuple(catalog)
        self._sweep_concurrency = sweep_concurrency
        self._allowed_content_types = (
            {ct.lower() for ct in allowed_content_types} if allowed_content_types else None
        )
        self._base_folder = base_folder.strip("/")

    @property
    def catalog(self) -> tuple[ResolutionSpec, ...]:
        return self._catalog

    def _folder(self, name: str) -> str:
        return f"{self._base_folder}/{name}" if self._base_folder else name

    async def ingest_upload(self, upload: RawUpload, *, title: str) -> IngestionResult:
        """Ingest an upload as handed over by the HTTP layer."""
        return await self.ingest(upload.buffer, title=title, content_type=upload.content_type)

    async def ingest(
        self,
        buffer: bytes,
        *,
        title: str,
        content_type: str | None = None,
    ) -> IngestionResult:
        """Run the full pipeline for one image.

        Raises:
            ValidationError: Buffer failed validation (nothing was uploaded)
            InvalidImageError: Thumbnail/medium could not be rendered
            UploadError: Original, thumbnail or medium upload failed (no sweep ran)
        """
        started = time.perf_counter()

        # 1. Validate
        await self._validate(buffer, content_type)

        # 2. Metadata + color (independent reads of the same buffer)
        metadata, color = await asyncio.gather(
            self._codec.decode_metadata(buffer),
            self._codec.extract_dominant_color(buffer),
        )

        # 3. + 4. Name and backend
        slug = self._name_provider(title)
        selection = await self._selector.get_active_selection()
        backend = selection.backend
        logger.info(
            "Ingesting '%s' as %s (%dx%d %s, %d bytes) via %s",
            title,
            slug,
            metadata.width,
            metadata.height,
            metadata.format,
            metadata.byte_size,
            backend.provider_name.value,
        )

        # 5. Core uploads - any failure aborts before the sweep
        original_asset, thumbnail_asset, medium_asset = await self._upload_core(
            backend, buffer, metadata, slug
        )

        # 6. Catalog sweep
        outcomes = await self._sweep(backend, buffer, slug)
        variant_assets = [
            (outcome.resolution.name, outcome.asset)
            for outcome in outcomes
            if outcome.asset is not None
        ]
        failed = [outcome.resolution.name for outcome in outcomes if not outcome.ok]
        if failed:
            logger.warning(
                "Ingestion of %s finished with %d/%d resolutions (missing: %s)",
                slug,
                len(variant_assets),
                len(outcomes),
                ", ".join(failed),
            )

        # 7. Assemble
        result = IngestionResult(
            original_asset=original_asset,
            thumbnail_asset=thumbnail_asset,
            medium_asset=medium_asset,
            variant_assets=variant_assets,
            primary_color=color.hex_color,
            metadata=metadata,
            slug=slug,
            provider_name=backend.provider_name,
            storage_provider_id=selection.provider_id,
            failed_variants=failed,
        )
        logger.info(
            "Ingested %s: %d assets uploaded in %.2fs",
            slug,
            len(result.all_assets()),
            time.perf_counter() - started,
        )
        return result

    async def _validate(self, buffer: bytes, content_type: str | None) -> None:
        report = await self._codec.validate(buffer, self._limits)
        errors = list(report.errors)

        if (
            content_type is not None
            and self._allowed_content_types is not None
            and content_type.lower() not in self._allowed_content_types
        ):
            errors.insert(
                0,
                f"Invalid file type '{content_type}'. Allowed: "
                f"{', '.join(sorted(self._allowed_content_types))}",
            )

        if errors:
            logger.info("Rejected upload: %s", "; ".join(errors))
            raise ValidationError(errors)

    async def _render_preset(self, buffer: bytes, preset: VariantPreset) -> GeneratedVariant:
        return await self._codec.resize(
            buffer,
            preset.width,
            preset.height,
            quality=preset.quality,
            image_format=preset.image_format,
            fit=preset.fit,
            resolution_name=preset.name,
        )

    # Hey future me - with return_exceptions=True all three uploads complete-or-fail before
    # we raise, so nothing is still writing to the backend when the caller sees the error.
    # The ones that did land are logged with their asset ids - they are orphans now.
    async def _upload_core(
        self,
        backend: IStorageBackend,
        buffer: bytes,
        metadata: ImageMetadata,
        slug: str,
    ) -> tuple[StoredAsset, StoredAsset, StoredAsset]:
        thumbnail, medium = await asyncio.gather(
            self._render_preset(buffer, THUMBNAIL_PRESET),
            self._render_preset(buffer, MEDIUM_PRESET),
        )

        results = await asyncio.gather(
            backend.upload(
                buffer,
                folder=self._folder("original"),
                filename=slug,
                image_format=metadata.format,
            ),
            backend.upload(
                thumbnail.buffer,
                folder=self._folder("thumbnails"),
                filename=f"{slug}-thumb",
                image_format=thumbnail.format,
            ),
            backend.upload(
                medium.buffer,
                folder=self._folder("medium"),
                filename=f"{slug}-medium",
                image_format=medium.format,
            ),
            return_exceptions=True,
        )

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            landed = [result.provider_asset_id for result in results if isinstance(result, StoredAsset)]
            logger.error(
                "Core upload failed for %s via %s (%d of 3 failed, orphaned assets: %s)",
                slug,
                backend.provider_name.value,
                len(errors),
                ", ".join(landed) or "none",
                exc_info=errors[0],
            )
            raise errors[0]

        original_asset, thumbnail_asset, medium_asset = results
        return (
            _with_dimensions(
                original_asset, metadata.width, metadata.height, metadata.byte_size, metadata.format
            ),
            _with_dimensions(
                thumbnail_asset, thumbnail.width, thumbnail.height, thumbnail.byte_size, thumbnail.format
            ),
            _with_dimensions(
                medium_asset, medium.width, medium.height, medium.byte_size, medium.format
            ),
        )

    async def _attempt_variant(
        self,
        backend: IStorageBackend,
        buffer: bytes,
        slug: str,
        spec: ResolutionSpec,
        semaphore: asyncio.Semaphore,
    ) -> VariantOutcome:
        async with semaphore:
            try:
                variant = await self._codec.resize(
                    buffer, spec.width, spec.height, resolution_name=spec.name
                )
                asset = await backend.upload(
                    variant.buffer,
                    folder=self._folder("resolutions"),
                    filename=f"{slug}-{spec.slug}",
                    image_format=variant.format,
                )
            except DomainException as e:
                logger.warning("Skipping %s for %s: %s", spec.name, slug, e.message)
                return VariantOutcome.failure(spec, e.message)

        return VariantOutcome.success(
            spec,
            _with_dimensions(asset, variant.width, variant.height, variant.byte_size, variant.format),
        )

    async def _sweep(
        self, backend: IStorageBackend, buffer: bytes, slug: str
    ) -> list[VariantOutcome]:
        """Attempt every catalog entry; gather() keeps the outcomes in catalog order."""
        semaphore = asyncio.Semaphore(self._sweep_concurrency)
        outcomes = await asyncio.gather(
            *(
                self._attempt_variant(backend, buffer, slug, spec, semaphore)
                for spec in self._catalog
            )
        )
        return list(outcomes)
