"""Application use cases - ingestion and provider administration."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

TRequest = TypeVar("TRequest")
TResponse = TypeVar("TResponse")


class UseCase(ABC, Generic[TRequest, TResponse]):
    """One request in, one response out. Wiring lives in api/dependencies.py."""

    @abstractmethod
    async def execute(self, request: TRequest) -> TResponse:
        """Execute the use case with the given request."""
        pass


# Import concrete use cases (after UseCase definition to avoid circular imports)
from wallspot.application.use_cases.switch_storage_provider import (  # noqa: E402
    SwitchStorageProviderRequest,
    SwitchStorageProviderResponse,
    SwitchStorageProviderUseCase,
)
from wallspot.application.use_cases.upload_wallpaper import (  # noqa: E402
    UploadWallpaperRequest,
    UploadWallpaperResponse,
    UploadWallpaperUseCase,
)

__all__ = [
    "UseCase",
    "SwitchStorageProviderRequest",
    "SwitchStorageProviderResponse",
    "SwitchStorageProviderUseCase",
    "UploadWallpaperRequest",
    "UploadWallpaperResponse",
    "UploadWallpaperUseCase",
]
