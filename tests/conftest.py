"""Shared fixtures.

Hey future me - test images are rendered in memory with Pillow, no binary fixtures in
the repo. make_image(...) returns encoded bytes, so it looks exactly like an upload.
"""

from collections.abc import AsyncGenerator, Callable
from io import BytesIO
from pathlib import Path

import pytest
import pytest_asyncio
from PIL import Image

from wallspot.config import DatabaseSettings
from wallspot.domain.dtos import IngestionResult
from wallspot.domain.ports.image_codec import ImageMetadata
from wallspot.domain.ports.storage_backend import StoredAsset, StorageProviderName
from wallspot.infrastructure.persistence import Database


def render_image(
    width: int,
    height: int,
    image_format: str = "JPEG",
    color: tuple[int, ...] = (200, 100, 50),
    mode: str = "RGB",
) -> bytes:
    image = Image.new(mode, (width, height), color)
    output = BytesIO()
    image.save(output, format=image_format)
    return output.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Factory fixture: make_image(800, 600, "PNG") -> encoded bytes."""
    return render_image


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A small landscape JPEG."""
    return render_image(640, 480)


def build_ingestion_result(slug: str = "sunset-abc") -> IngestionResult:
    """A finished ingestion: 3 core assets + 2 catalog variants."""

    def asset(name: str, width: int, height: int) -> StoredAsset:
        return StoredAsset(
            url=f"https://cdn.test/{slug}-{name}.jpg",
            provider_asset_id=f"wallpapers/{slug}-{name}",
            format="jpeg",
            width=width,
            height=height,
            byte_size=1000,
        )

    return IngestionResult(
        original_asset=asset("original", 4000, 3000),
        thumbnail_asset=asset("thumb", 400, 300),
        medium_asset=asset("medium", 800, 600),
        variant_assets=[
            ("1080p", asset("1080p", 1920, 1080)),
            ("Thumbnail", asset("thumbnail", 400, 300)),
        ],
        primary_color="#e67828",
        metadata=ImageMetadata(width=4000, height=3000, format="jpeg", byte_size=2_000_000),
        slug=slug,
        provider_name=StorageProviderName.CLOUDINARY,
    )


@pytest.fixture
def make_result() -> Callable[..., IngestionResult]:
    """Factory fixture: make_result("slug") -> IngestionResult."""
    return build_ingestion_result


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Fresh SQLite file database with all tables."""
    database = Database(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    await database.create_tables()
    yield database
    await database.close()
