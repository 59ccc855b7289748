"""Storage Selector - decides which storage backend uploads go to.

Hey future me - this replaced the old global "StorageFactory.instance" singleton. It is a
plain object you construct (and inject) yourself, so every test gets its own isolated
cache instead of fighting over module state.

Lifecycle of the cached selection:
1. Empty at construction
2. First get_active_backend() reads the active storage_providers row, builds the
   backend via the factory and caches it (populate-on-miss)
3. Every later call returns the SAME instance until reset()
4. reset() drops the cache - call it after an admin switches providers

If reading the configuration FAILS (DB down, table missing) we log and fall back to the
default provider. The fallback is cached like a normal selection but flagged
(selection.is_fallback) - the next reset() retries the configuration.

Concurrency: population happens under an asyncio.Lock so two uploads racing on a cold
cache resolve the backend only once. reset() is a single attribute assignment, atomic
on the event loop.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from wallspot.domain.exceptions import EntityNotFoundException
from wallspot.domain.ports.storage_backend import IStorageBackend, StorageProviderName
from wallspot.domain.ports.storage_config import IStorageProviderConfig

logger = logging.getLogger(__name__)

BackendFactory = Callable[[StorageProviderName | str], IStorageBackend]


@dataclass(frozen=True)
class ActiveBackendSelection:
    """The cached choice. provider_id is None when no config row was used."""

    backend: IStorageBackend
    provider_id: int | None
    is_fallback: bool = False

    @property
    def provider_name(self) -> StorageProviderName:
        return self.backend.provider_name


class StorageSelector:
    """Resolves and caches the active storage backend."""

    def __init__(
        self,
        config: IStorageProviderConfig,
        backend_factory: BackendFactory,
        default_provider: StorageProviderName = StorageProviderName.CLOUDINARY,
    ) -> None:
        """Initialize selector.

        Args:
            config: Where the active provider row is read from
            backend_factory: Builds a backend from a provider name
            default_provider: Used when no row is active or the read fails
        """
        self._config = config
        self._factory = backend_factory
        self._default_provider = default_provider
        self._selection: ActiveBackendSelection | None = None
        self._lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the selector can be built outside a running loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def is_cached(self) -> bool:
        return self._selection is not None

    async def get_active_backend(self) -> IStorageBackend:
        """Get the active backend (cached after the first call)."""
        selection = await self.get_active_selection()
        return selection.backend

    async def get_active_selection(self) -> ActiveBackendSelection:
        """Like get_active_backend() but also tells you which config row was used."""
        selection = self._selection
        if selection is not None:
            return selection

        async with self._get_lock():
            # Someone else may have populated it while we waited
            if self._selection is None:
                self._selection = await self._resolve()
            return self._selection

    async def _resolve(self) -> ActiveBackendSelection:
        try:
            record = await self._config.get_active()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(
                "Failed to read storage provider configuration, falling back to %s: %s",
                self._default_provider.value,
                e,
            )
            return ActiveBackendSelection(
                backend=self._factory(self._default_provider),
                provider_id=None,
                is_fallback=True,
            )

        if record is None:
            logger.info(
                "No active storage provider configured, using default %s",
                self._default_provider.value,
            )
            return ActiveBackendSelection(
                backend=self._factory(self._default_provider), provider_id=None
            )

        backend = self._factory(record.provider_name)
        logger.info(
            "Active storage backend: %s (provider id=%d, priority=%d)",
            backend.provider_name.value,
            record.id,
            record.priority,
        )
        return ActiveBackendSelection(backend=backend, provider_id=record.id)

    def reset(self) -> None:
        """Forget the cached selection; the next call re-reads the configuration."""
        if self._selection is not None:
            logger.info("Storage backend selection reset (was %s)", self._selection.provider_name.value)
        self._selection = None

    def build_backend(self, provider: StorageProviderName | str) -> IStorageBackend:
        """Build a backend by name without touching configuration or the cache."""
        return self._factory(provider)

    async def get_backend_by_id(self, provider_id: int) -> IStorageBackend:
        """Build the backend for a specific config row, bypassing the cache.

        Raises:
            EntityNotFoundException: If no row has that id
        """
        record = await self._config.get_by_id(provider_id)
        if record is None:
            raise EntityNotFoundException("StorageProvider", provider_id)
        return self._factory(record.provider_name)
