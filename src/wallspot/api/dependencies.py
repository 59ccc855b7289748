"""Dependency injection for API endpoints."""

from collections.abc import AsyncGenerator
from typing import Any, cast

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wallspot.application.services.ingestion import IngestionPipeline
from wallspot.application.services.storage_selector import StorageSelector
from wallspot.application.use_cases.switch_storage_provider import (
    SwitchStorageProviderUseCase,
)
from wallspot.application.use_cases.upload_wallpaper import UploadWallpaperUseCase
from wallspot.config import Settings, get_settings
from wallspot.infrastructure.persistence.database import Database


# Hey future me - everything here comes off app.state, which lifespan() fills at startup
# (infrastructure/lifecycle.py). A missing attribute means startup did not finish, so we
# answer 503 instead of crashing with AttributeError deep inside an endpoint.
def _from_state(request: Request, name: str) -> Any:
    if not hasattr(request.app.state, name):
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return getattr(request.app.state, name)


def get_database(request: Request) -> Database:
    """Get the Database from app state."""
    return cast(Database, _from_state(request, "db"))


# Use in endpoint params like: "session: AsyncSession = Depends(get_db_session)"
async def get_db_session(
    db: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits when the request succeeds."""
    async with db.session_scope() as session:
        yield session


def get_storage_selector(request: Request) -> StorageSelector:
    """Get the process-wide StorageSelector (owns the cached active backend)."""
    return cast(StorageSelector, _from_state(request, "selector"))


def get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    """Get the shared IngestionPipeline (stateless, safe to share)."""
    return cast(IngestionPipeline, _from_state(request, "pipeline"))


def get_upload_wallpaper_use_case(
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
    selector: StorageSelector = Depends(get_storage_selector),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> UploadWallpaperUseCase:
    """Get UploadWallpaperUseCase wired to the shared pipeline."""
    return UploadWallpaperUseCase(
        pipeline,
        selector,
        db,
        compensate_on_persist_failure=settings.upload.compensate_on_persist_failure,
    )


def get_switch_storage_provider_use_case(
    selector: StorageSelector = Depends(get_storage_selector),
    db: Database = Depends(get_database),
) -> SwitchStorageProviderUseCase:
    """Get SwitchStorageProviderUseCase (resets the shared selector on success)."""
    return SwitchStorageProviderUseCase(db, selector)
