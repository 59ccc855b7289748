"""Shared HTTP client pool for the HTTP-based storage backends.

Hey future me - the Cloudinary backend uploads 12+ renditions per wallpaper. Creating a
fresh httpx.AsyncClient per upload would throw away keep-alive and open a new TLS
connection every time. Backends get the shared client from here instead.

Usage:
    client = await HttpClientPool.get_client()
    response = await client.post(url, data=..., files=...)

Call HttpClientPool.close() at app shutdown!
"""

import asyncio
import logging
from typing import ClassVar

import httpx

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Process-wide shared httpx.AsyncClient.

    - Lazy initialization (created on first use)
    - Guarded by asyncio.Lock
    - Proper cleanup at shutdown
    """

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    # Uploads of 5K renditions can take a while on slow links
    DEFAULT_TIMEOUT: ClassVar[float] = 60.0
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 20
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 50

    @classmethod
    def _ensure_lock(cls) -> asyncio.Lock:
        # asyncio.Lock() wants a running loop, so create it on first use
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def get_client(cls, timeout: float | None = None) -> httpx.AsyncClient:
        """Get the shared client. timeout only applies on the FIRST call."""
        async with cls._ensure_lock():
            if cls._client is None:
                effective_timeout = timeout or cls.DEFAULT_TIMEOUT
                cls._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(effective_timeout),
                    limits=httpx.Limits(
                        max_keepalive_connections=cls.DEFAULT_MAX_KEEPALIVE,
                        max_connections=cls.DEFAULT_MAX_CONNECTIONS,
                    ),
                    follow_redirects=True,
                )
                logger.info(
                    "HTTP client pool initialized (timeout=%.1fs, max_conn=%d)",
                    effective_timeout,
                    cls.DEFAULT_MAX_CONNECTIONS,
                )
            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client. A later get_client() creates a new one."""
        async with cls._ensure_lock():
            if cls._client is not None:
                await cls._client.aclose()
                cls._client = None
                logger.info("HTTP client pool closed")

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._client is not None
