"""Tests for StorageSelector caching and fallback.

Hey future me - every test builds its OWN selector. There is no global cache to reset
between tests.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from wallspot.application.services.storage_selector import StorageSelector
from wallspot.domain.exceptions import ConfigurationError, NotFoundError
from wallspot.domain.ports.storage_backend import StorageProviderName
from wallspot.domain.ports.storage_config import IStorageProviderConfig, StorageProviderRecord


def _record(provider_id: int = 1, name: str = "s3", priority: int = 0) -> StorageProviderRecord:
    return StorageProviderRecord(id=provider_id, provider_name=name, is_active=True, priority=priority)


def _fake_backend(name: StorageProviderName | str) -> MagicMock:
    backend = MagicMock()
    backend.provider_name = StorageProviderName.parse(name) if isinstance(name, str) else name
    return backend


@pytest.fixture
def config() -> AsyncMock:
    mock = AsyncMock(spec=IStorageProviderConfig)
    mock.get_active.return_value = _record()
    return mock


@pytest.fixture
def factory() -> MagicMock:
    return MagicMock(side_effect=_fake_backend)


@pytest.fixture
def selector(config, factory) -> StorageSelector:
    return StorageSelector(config, factory, default_provider=StorageProviderName.LOCAL)


class TestGetActiveBackend:
    @pytest.mark.asyncio
    async def test_second_call_returns_same_instance(self, selector, config, factory) -> None:
        first = await selector.get_active_backend()
        second = await selector.get_active_backend()

        assert first is second
        assert first.provider_name is StorageProviderName.S3
        config.get_active.assert_awaited_once()
        factory.assert_called_once_with("s3")

    @pytest.mark.asyncio
    async def test_reset_requeries_configuration(self, selector, config) -> None:
        first = await selector.get_active_backend()
        config.get_active.return_value = _record(2, "cloudinary")

        selector.reset()
        assert selector.is_cached is False
        second = await selector.get_active_backend()

        assert second is not first
        assert second.provider_name is StorageProviderName.CLOUDINARY
        assert config.get_active.await_count == 2

    @pytest.mark.asyncio
    async def test_selection_carries_provider_id(self, selector) -> None:
        selection = await selector.get_active_selection()
        assert selection.provider_id == 1
        assert selection.is_fallback is False

    @pytest.mark.asyncio
    async def test_no_active_row_uses_default(self, selector, config) -> None:
        config.get_active.return_value = None
        selection = await selector.get_active_selection()
        assert selection.provider_name is StorageProviderName.LOCAL
        assert selection.provider_id is None
        assert selection.is_fallback is False

    @pytest.mark.asyncio
    async def test_config_failure_falls_back_to_default(self, selector, config) -> None:
        config.get_active.side_effect = OperationalError("SELECT", {}, Exception("db locked"))
        selection = await selector.get_active_selection()
        assert selection.provider_name is StorageProviderName.LOCAL
        assert selection.is_fallback is True

    @pytest.mark.asyncio
    async def test_fallback_is_retried_after_reset(self, selector, config) -> None:
        config.get_active.side_effect = OperationalError("SELECT", {}, Exception("db locked"))
        await selector.get_active_backend()

        config.get_active.side_effect = None
        config.get_active.return_value = _record(5, "s3")
        selector.reset()
        selection = await selector.get_active_selection()

        assert selection.provider_id == 5
        assert selection.is_fallback is False

    @pytest.mark.asyncio
    async def test_misconfigured_backend_is_raised_and_not_cached(self, selector, factory) -> None:
        factory.side_effect = ConfigurationError("S3 bucket not configured")
        with pytest.raises(ConfigurationError):
            await selector.get_active_backend()
        assert selector.is_cached is False

        factory.side_effect = _fake_backend
        backend = await selector.get_active_backend()
        assert backend.provider_name is StorageProviderName.S3

    @pytest.mark.asyncio
    async def test_concurrent_cold_calls_resolve_once(self, selector, config, factory) -> None:
        async def slow_get_active() -> StorageProviderRecord:
            await asyncio.sleep(0.01)
            return _record()

        config.get_active.side_effect = slow_get_active
        backends = await asyncio.gather(*(selector.get_active_backend() for _ in range(5)))

        assert all(backend is backends[0] for backend in backends)
        factory.assert_called_once()


class TestGetBackendById:
    @pytest.mark.asyncio
    async def test_bypasses_cache(self, selector, config, factory) -> None:
        config.get_by_id.return_value = _record(9, "cloudinary")
        cached = await selector.get_active_backend()
        by_id = await selector.get_backend_by_id(9)

        assert by_id is not cached
        assert by_id.provider_name is StorageProviderName.CLOUDINARY
        # cache untouched
        assert await selector.get_active_backend() is cached

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self, selector, config) -> None:
        config.get_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await selector.get_backend_by_id(42)
