"""Tests for the shared httpx client pool."""

import httpx
import pytest
import pytest_asyncio

from wallspot.infrastructure.storage.http_pool import HttpClientPool


@pytest_asyncio.fixture(autouse=True)
async def fresh_pool():
    HttpClientPool._lock = None
    await HttpClientPool.close()
    yield
    await HttpClientPool.close()
    HttpClientPool._lock = None


class TestHttpClientPool:
    @pytest.mark.asyncio
    async def test_client_is_created_lazily_and_shared(self) -> None:
        assert not HttpClientPool.is_initialized()

        first = await HttpClientPool.get_client()
        second = await HttpClientPool.get_client(timeout=5.0)

        assert isinstance(first, httpx.AsyncClient)
        assert first is second
        assert HttpClientPool.is_initialized()

    @pytest.mark.asyncio
    async def test_timeout_applies_on_first_call(self) -> None:
        client = await HttpClientPool.get_client(timeout=7.5)
        assert client.timeout.read == 7.5

    @pytest.mark.asyncio
    async def test_close_allows_recreation(self) -> None:
        first = await HttpClientPool.get_client()
        await HttpClientPool.close()

        assert not HttpClientPool.is_initialized()
        assert first.is_closed
        assert await HttpClientPool.get_client() is not first
