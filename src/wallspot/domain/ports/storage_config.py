"""Storage Provider Configuration Port - where StorageSelector reads its choice from.

The selector lives for the whole process, longer than any DB session, so implementations
open their own short-lived session per call.

Implementation:
- infrastructure/persistence/repositories.py (DatabaseStorageProviderConfig)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageProviderRecord:
    """One configured provider row. provider_name is the RAW column value."""

    id: int
    provider_name: str
    is_active: bool
    priority: int


class IStorageProviderConfig(ABC):
    """Read access to the storage_providers configuration."""

    @abstractmethod
    async def get_active(self) -> StorageProviderRecord | None:
        """Highest-priority active record (ties: most recently updated), or None."""
        ...

    @abstractmethod
    async def get_by_id(self, provider_id: int) -> StorageProviderRecord | None:
        """Record by primary key, or None."""
        ...
