"""Image ingestion pipeline."""

from wallspot.application.services.ingestion.pipeline import IngestionPipeline

__all__ = ["IngestionPipeline"]
