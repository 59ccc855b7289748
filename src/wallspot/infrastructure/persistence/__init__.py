"""Persistence layer - SQLAlchemy models, session management and repositories."""

from wallspot.infrastructure.persistence.database import Database
from wallspot.infrastructure.persistence.models import (
    Base,
    CategoryModel,
    StorageProviderModel,
    WallpaperModel,
    WallpaperResolutionModel,
)
from wallspot.infrastructure.persistence.repositories import (
    DatabaseStorageProviderConfig,
    StorageProviderRepository,
    WallpaperRepository,
)

__all__ = [
    "Base",
    "CategoryModel",
    "Database",
    "DatabaseStorageProviderConfig",
    "StorageProviderModel",
    "StorageProviderRepository",
    "WallpaperModel",
    "WallpaperRepository",
    "WallpaperResolutionModel",
]
