"""Application lifecycle management for startup and shutdown tasks.

Everything the ingestion endpoints need is built ONCE here and hung on app.state:

- app.state.db        -> Database (engine + session factory)
- app.state.codec     -> PillowImageCodec
- app.state.selector  -> StorageSelector (owns the cached active backend)
- app.state.pipeline  -> IngestionPipeline

api/dependencies.py reads them back per request.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial

from fastapi import FastAPI

from wallspot.application.services.ingestion import IngestionPipeline
from wallspot.application.services.storage_selector import StorageSelector
from wallspot.config import Settings, get_settings
from wallspot.domain.ports.image_codec import IImageCodec
from wallspot.infrastructure.imaging.pillow_codec import PillowImageCodec
from wallspot.infrastructure.observability import configure_logging
from wallspot.infrastructure.persistence import Database, DatabaseStorageProviderConfig
from wallspot.infrastructure.storage import HttpClientPool, create_storage_backend

logger = logging.getLogger(__name__)


@dataclass
class IngestionServices:
    """The wired object graph behind the upload endpoints."""

    database: Database
    codec: IImageCodec
    selector: StorageSelector
    pipeline: IngestionPipeline


def build_ingestion_services(settings: Settings, database: Database) -> IngestionServices:
    """Wire codec -> selector -> pipeline from settings."""
    codec = PillowImageCodec()
    selector = StorageSelector(
        DatabaseStorageProviderConfig(database),
        partial(create_storage_backend, settings=settings.storage, codec=codec),
        default_provider=settings.storage.default_provider,
    )
    pipeline = IngestionPipeline(
        codec,
        selector,
        settings.upload.validation_limits(),
        sweep_concurrency=settings.upload.sweep_concurrency,
        allowed_content_types=settings.upload.allowed_file_types,
        base_folder=settings.storage.default_folder,
    )
    return IngestionServices(database=database, codec=codec, selector=selector, pipeline=pipeline)


# Listen future me - everything before `yield` runs at STARTUP, everything after at
# SHUTDOWN. The finally block ALWAYS runs, so a half-finished startup still releases the
# DB engine and the shared httpx client.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()

    configure_logging(
        log_level=settings.logging.level,
        json_format=settings.logging.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    db = Database(settings.database)
    app.state.db = db
    try:
        # No migrations yet - create_all is a no-op for existing tables
        await db.create_tables()
        logger.info("Database initialized: %s", settings.database.url)

        services = build_ingestion_services(settings, db)
        app.state.codec = services.codec
        app.state.selector = services.selector
        app.state.pipeline = services.pipeline
        app.state.settings = settings
        logger.info(
            "Ingestion ready (default provider %s, %d catalog resolutions)",
            settings.storage.default_provider.value,
            len(services.pipeline.catalog),
        )

        yield
    finally:
        logger.info("Shutting down application")
        try:
            await db.close()
            logger.info("Database connection closed")
        except Exception as e:
            logger.exception("Error closing database: %s", e)

        try:
            await HttpClientPool.close()
            logger.info("HTTP client pool closed")
        except Exception as e:
            logger.exception("Error closing HTTP client pool: %s", e)
