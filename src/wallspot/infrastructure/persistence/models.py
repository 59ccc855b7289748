"""SQLAlchemy ORM models for Wallspot.

Only the tables the ingestion core reads or writes live here: the storage provider
configuration and the wallpaper / resolution / category rows. Users, downloads,
favorites and analytics belong to the surrounding application.
"""

from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# STORAGE PROVIDERS (read by StorageSelector)
# =============================================================================
# Hey future me - this is the RUNTIME switch for where uploads go. The selector picks the
# active row with the highest priority (ties -> most recently updated). Credentials stay
# in env settings; the config column is informational for the admin UI only.
# =============================================================================


class StorageProviderModel(Base):
    """Configured storage provider row."""

    __tablename__ = "storage_providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # 'cloudinary', 's3', 'local'
    provider_name: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False, server_default=sa.false()
    )
    # Higher priority = used first
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    config: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )

    __table_args__ = (Index("ix_storage_providers_active_priority", "is_active", "priority"),)


# Many-to-many link, no extra payload
wallpaper_categories = Table(
    "wallpaper_categories",
    Base.metadata,
    Column("wallpaper_id", ForeignKey("wallpapers.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", sa.DateTime(timezone=True), nullable=False, default=utc_now),
)


class CategoryModel(Base):
    """Gallery category (Nature, Abstract, ...)."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    # Cached count, bumped when wallpapers are linked
    wallpaper_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )


class WallpaperModel(Base):
    """A published wallpaper. Written in one transaction with its resolutions."""

    __tablename__ = "wallpapers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    medium_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    # "#rrggbb", used as the placeholder while the thumbnail loads
    primary_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image_format: Mapped[str | None] = mapped_column(String(10), nullable=True)
    uploaded_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    storage_provider_id: Mapped[int | None] = mapped_column(
        ForeignKey("storage_providers.id"), nullable=True
    )
    is_featured: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    resolutions: Mapped[list["WallpaperResolutionModel"]] = relationship(
        back_populates="wallpaper",
        cascade="all, delete-orphan",
        order_by="WallpaperResolutionModel.id",
    )
    categories: Mapped[list[CategoryModel]] = relationship(secondary=wallpaper_categories)

    __table_args__ = (
        Index("ix_wallpapers_featured", "is_featured", "is_active"),
        Index("ix_wallpapers_created", "created_at"),
    )


class WallpaperResolutionModel(Base):
    """One downloadable rendition of a wallpaper."""

    __tablename__ = "wallpaper_resolutions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wallpaper_id: Mapped[int] = mapped_column(
        ForeignKey("wallpapers.id", ondelete="CASCADE"), nullable=False
    )
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    # "1080p", "4K", "Mobile HD", ... or "Original"
    resolution_name: Mapped[str] = mapped_column(String(50), nullable=False)
    file_size: Mapped[int | None] = mapped_column(sa.BigInteger, nullable=True)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    # Needed to delete the object from the backend later
    provider_asset_id: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_original: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )

    wallpaper: Mapped[WallpaperModel] = relationship(back_populates="resolutions")

    __table_args__ = (
        Index("ix_wallpaper_resolutions_wallpaper", "wallpaper_id"),
        Index("ix_wallpaper_resolutions_size", "width", "height"),
        UniqueConstraint("wallpaper_id", "resolution_name", name="uq_wallpaper_resolution_name"),
    )
