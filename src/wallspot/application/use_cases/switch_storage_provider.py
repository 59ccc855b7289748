"""Switch storage provider use case."""

import logging
from dataclasses import dataclass

from wallspot.application.services.storage_selector import StorageSelector
from wallspot.application.use_cases import UseCase
from wallspot.domain.ports.storage_config import StorageProviderRecord
from wallspot.infrastructure.persistence.database import Database
from wallspot.infrastructure.persistence.repositories import StorageProviderRepository

logger = logging.getLogger(__name__)


@dataclass
class SwitchStorageProviderRequest:
    """Request to make one storage_providers row the active one."""

    provider_id: int


@dataclass
class SwitchStorageProviderResponse:
    """Response from switching provider."""

    provider: StorageProviderRecord
    previous_provider_name: str | None


class SwitchStorageProviderUseCase(
    UseCase[SwitchStorageProviderRequest, SwitchStorageProviderResponse]
):
    """Activate a provider and drop the selector's cached backend.

    Uploads that already resolved their backend finish on the old one. The next
    ingestion re-reads the configuration.
    """

    def __init__(self, database: Database, selector: StorageSelector) -> None:
        self._database = database
        self._selector = selector

    async def execute(
        self, request: SwitchStorageProviderRequest
    ) -> SwitchStorageProviderResponse:
        """Switch provider.

        Raises:
            EntityNotFoundException: If no provider row has that id
        """
        async with self._database.session_scope() as session:
            repository = StorageProviderRepository(session)
            previous = await repository.get_active()
            record = await repository.activate(request.provider_id)

        # Only after the commit, otherwise a racing upload could re-cache the old row
        self._selector.reset()
        logger.info(
            "Switched storage provider %s -> %s",
            previous.provider_name if previous else "default",
            record.provider_name,
        )
        return SwitchStorageProviderResponse(
            provider=record,
            previous_provider_name=previous.provider_name if previous else None,
        )
