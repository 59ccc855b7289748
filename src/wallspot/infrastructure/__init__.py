"""Infrastructure layer: adapters for imaging, storage, persistence and observability."""
