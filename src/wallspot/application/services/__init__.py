"""Application services."""

from wallspot.application.services.ingestion import IngestionPipeline
from wallspot.application.services.storage_selector import (
    ActiveBackendSelection,
    StorageSelector,
)

__all__ = ["ActiveBackendSelection", "IngestionPipeline", "StorageSelector"]
