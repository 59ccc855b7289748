"""Upload wallpaper use case."""

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from wallspot.application.services.ingestion import IngestionPipeline
from wallspot.application.services.storage_selector import StorageSelector
from wallspot.application.use_cases import UseCase
from wallspot.domain.dtos import IngestionResult, RawUpload
from wallspot.domain.exceptions import DomainException, PersistenceError
from wallspot.infrastructure.persistence.database import Database
from wallspot.infrastructure.persistence.repositories import WallpaperRepository

logger = logging.getLogger(__name__)


@dataclass
class UploadWallpaperRequest:
    """Request to ingest and publish one wallpaper."""

    image: RawUpload
    title: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    category_ids: list[int] = field(default_factory=list)
    uploaded_by: int | None = None
    is_featured: bool = False


@dataclass
class UploadWallpaperResponse:
    """Response from uploading a wallpaper."""

    wallpaper_id: int
    slug: str
    result: IngestionResult
    resolution_count: int


class UploadWallpaperUseCase(UseCase[UploadWallpaperRequest, UploadWallpaperResponse]):
    """Use case for uploading a wallpaper end to end.

    This use case:
    1. Checks the requested categories exist (before any upload happens)
    2. Runs the ingestion pipeline (validate, render, upload)
    3. Writes wallpaper + resolutions + category links in ONE transaction
    4. If that write fails, deletes the uploaded assets again (when enabled)
    """

    # Hey future me - step 4 is the compensation the pipeline itself never does. It is
    # best-effort: a delete that fails is logged and counted, never raised, because the
    # interesting error for the caller is the DB failure, not the cleanup.

    def __init__(
        self,
        pipeline: IngestionPipeline,
        selector: StorageSelector,
        database: Database,
        *,
        compensate_on_persist_failure: bool = True,
    ) -> None:
        """Initialize the use case with required dependencies.

        Args:
            pipeline: Ingestion pipeline producing the uploaded assets
            selector: Used to rebuild the backend for compensation deletes
            database: Session source for the persistence write
            compensate_on_persist_failure: Delete uploaded assets if the write fails
        """
        self._pipeline = pipeline
        self._selector = selector
        self._database = database
        self._compensate = compensate_on_persist_failure

    async def execute(self, request: UploadWallpaperRequest) -> UploadWallpaperResponse:
        """Ingest and persist.

        Raises:
            EntityNotFoundException: A category id does not exist (nothing uploaded)
            ValidationError / InvalidImageError / UploadError: From the pipeline
            PersistenceError: The DB write failed after uploading
        """
        if request.category_ids:
            async with self._database.session_scope() as session:
                await WallpaperRepository(session).load_categories(request.category_ids)

        result = await self._pipeline.ingest_upload(request.image, title=request.title)

        try:
            async with self._database.session_scope() as session:
                wallpaper = await WallpaperRepository(session).add_ingested(
                    result,
                    title=request.title,
                    description=request.description,
                    tags=request.tags,
                    category_ids=request.category_ids,
                    uploaded_by=request.uploaded_by,
                    storage_provider_id=result.storage_provider_id,
                    is_featured=request.is_featured,
                )
                wallpaper_id = wallpaper.id
                resolution_count = len(wallpaper.resolutions)
        except (SQLAlchemyError, DomainException) as e:
            logger.error("Persisting wallpaper %s failed: %s", result.slug, e, exc_info=True)
            deleted = await self._compensate_uploads(result)
            raise PersistenceError(
                f"Wallpaper '{result.slug}' could not be saved", deleted_assets=deleted
            ) from e

        logger.info(
            "Published wallpaper %s (id=%d, %d resolutions, color %s)",
            result.slug,
            wallpaper_id,
            resolution_count,
            result.primary_color,
        )
        return UploadWallpaperResponse(
            wallpaper_id=wallpaper_id,
            slug=result.slug,
            result=result,
            resolution_count=resolution_count,
        )

    async def _compensate_uploads(self, result: IngestionResult) -> int:
        """Delete every asset of a result. Returns how many deletes succeeded."""
        assets = result.all_assets()
        if not self._compensate:
            logger.warning(
                "Compensation disabled - %d assets of %s stay orphaned on %s: %s",
                len(assets),
                result.slug,
                result.provider_name.value,
                ", ".join(asset.provider_asset_id for asset in assets),
            )
            return 0

        backend = self._selector.build_backend(result.provider_name)
        outcomes = await asyncio.gather(
            *(backend.delete(asset.provider_asset_id) for asset in assets),
            return_exceptions=True,
        )

        deleted = 0
        for asset, outcome in zip(assets, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.warning(
                    "Compensation delete of %s failed: %s", asset.provider_asset_id, outcome
                )
            else:
                deleted += 1
        logger.info("Compensation removed %d/%d assets of %s", deleted, len(assets), result.slug)
        return deleted
