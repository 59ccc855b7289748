"""Repositories for storage configuration and ingested wallpapers."""

import logging
from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wallspot.domain.dtos import IngestionResult
from wallspot.domain.exceptions import EntityNotFoundException
from wallspot.domain.ports.storage_backend import StorageProviderName
from wallspot.domain.ports.storage_config import (
    IStorageProviderConfig,
    StorageProviderRecord,
)
from wallspot.domain.value_objects.resolution import ORIGINAL_RESOLUTION_NAME
from wallspot.infrastructure.persistence.database import Database
from wallspot.infrastructure.persistence.models import (
    CategoryModel,
    StorageProviderModel,
    WallpaperModel,
    WallpaperResolutionModel,
)

logger = logging.getLogger(__name__)


def _to_record(model: StorageProviderModel) -> StorageProviderRecord:
    return StorageProviderRecord(
        id=model.id,
        provider_name=model.provider_name,
        is_active=model.is_active,
        priority=model.priority,
    )


class StorageProviderRepository:
    """CRUD for storage_providers rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(
        self,
        provider_name: StorageProviderName | str,
        *,
        is_active: bool = False,
        priority: int = 0,
        config: dict | None = None,
    ) -> StorageProviderRecord:
        name = provider_name.value if isinstance(provider_name, StorageProviderName) else provider_name
        model = StorageProviderModel(
            provider_name=name,
            is_active=is_active,
            priority=priority,
            config=config,
        )
        self.session.add(model)
        await self.session.flush()
        return _to_record(model)

    async def get_active(self) -> StorageProviderRecord | None:
        stmt = (
            select(StorageProviderModel)
            .where(StorageProviderModel.is_active.is_(True))
            .order_by(
                StorageProviderModel.priority.desc(),
                StorageProviderModel.updated_at.desc(),
                StorageProviderModel.id.desc(),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_record(model) if model else None

    async def get_by_id(self, provider_id: int) -> StorageProviderRecord | None:
        model = await self.session.get(StorageProviderModel, provider_id)
        return _to_record(model) if model else None

    async def list_all(self) -> list[StorageProviderRecord]:
        stmt = select(StorageProviderModel).order_by(
            StorageProviderModel.priority.desc(), StorageProviderModel.id
        )
        result = await self.session.execute(stmt)
        return [_to_record(model) for model in result.scalars().all()]

    async def activate(self, provider_id: int) -> StorageProviderRecord:
        """Make one provider the only active one.

        Raises:
            EntityNotFoundException: If no row has that id
        """
        model = await self.session.get(StorageProviderModel, provider_id)
        if model is None:
            raise EntityNotFoundException("StorageProvider", provider_id)

        await self.session.execute(
            update(StorageProviderModel)
            .where(StorageProviderModel.id != provider_id)
            .values(is_active=False)
        )
        model.is_active = True
        await self.session.flush()
        await self.session.refresh(model)
        logger.info("Activated storage provider %s (id=%d)", model.provider_name, model.id)
        return _to_record(model)


class DatabaseStorageProviderConfig(IStorageProviderConfig):
    """IStorageProviderConfig backed by storage_providers, one session per read."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def get_active(self) -> StorageProviderRecord | None:
        async with self._database.session_scope() as session:
            return await StorageProviderRepository(session).get_active()

    async def get_by_id(self, provider_id: int) -> StorageProviderRecord | None:
        async with self._database.session_scope() as session:
            return await StorageProviderRepository(session).get_by_id(provider_id)


class WallpaperRepository:
    """Persistence boundary for ingested wallpapers."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(
            select(WallpaperModel.id).where(WallpaperModel.slug == slug)
        )
        return result.scalar_one_or_none() is not None

    async def load_categories(self, category_ids: Sequence[int]) -> list[CategoryModel]:
        if not category_ids:
            return []
        wanted = set(category_ids)
        result = await self.session.execute(
            select(CategoryModel).where(CategoryModel.id.in_(wanted))
        )
        categories = list(result.scalars().all())
        missing = wanted - {category.id for category in categories}
        if missing:
            raise EntityNotFoundException("Category", sorted(missing))
        return categories

    # Hey future me - this writes wallpaper + category links + ALL resolution rows in the
    # caller's session. Nothing is committed here; session_scope() commits or rolls back
    # the whole lot, so readers never see a wallpaper without its resolutions.
    async def add_ingested(
        self,
        result: IngestionResult,
        *,
        title: str,
        description: str | None = None,
        tags: Sequence[str] = (),
        category_ids: Sequence[int] = (),
        uploaded_by: int | None = None,
        storage_provider_id: int | None = None,
        is_featured: bool = False,
    ) -> WallpaperModel:
        """Stage rows for one ingestion result and flush to get the id.

        Raises:
            EntityNotFoundException: If any category id does not exist
        """
        categories = await self.load_categories(category_ids)

        wallpaper = WallpaperModel(
            title=title,
            slug=result.slug,
            description=description,
            original_url=result.original_asset.url,
            thumbnail_url=result.thumbnail_asset.url,
            medium_url=result.medium_asset.url,
            primary_color=result.primary_color,
            tags=list(tags),
            width=result.metadata.width,
            height=result.metadata.height,
            image_format=result.metadata.format,
            uploaded_by=uploaded_by,
            storage_provider_id=storage_provider_id,
            is_featured=is_featured,
        )
        wallpaper.categories = categories

        for name, asset in result.variant_assets:
            wallpaper.resolutions.append(
                WallpaperResolutionModel(
                    width=asset.width or 0,
                    height=asset.height or 0,
                    resolution_name=name,
                    file_size=asset.byte_size,
                    url=asset.url,
                    provider_asset_id=asset.provider_asset_id,
                    is_original=False,
                )
            )
        wallpaper.resolutions.append(
            WallpaperResolutionModel(
                width=result.metadata.width,
                height=result.metadata.height,
                resolution_name=ORIGINAL_RESOLUTION_NAME,
                file_size=result.metadata.byte_size,
                url=result.original_asset.url,
                provider_asset_id=result.original_asset.provider_asset_id,
                is_original=True,
            )
        )

        for category in categories:
            category.wallpaper_count += 1

        self.session.add(wallpaper)
        await self.session.flush()
        logger.info(
            "Stored wallpaper %s (id=%d, %d resolutions, %d categories)",
            wallpaper.slug,
            wallpaper.id,
            len(wallpaper.resolutions),
            len(categories),
        )
        return wallpaper

    async def get_by_id(self, wallpaper_id: int) -> WallpaperModel | None:
        stmt = (
            select(WallpaperModel)
            .where(WallpaperModel.id == wallpaper_id)
            .options(
                selectinload(WallpaperModel.resolutions),
                selectinload(WallpaperModel.categories),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> WallpaperModel | None:
        stmt = (
            select(WallpaperModel)
            .where(WallpaperModel.slug == slug)
            .options(
                selectinload(WallpaperModel.resolutions),
                selectinload(WallpaperModel.categories),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
