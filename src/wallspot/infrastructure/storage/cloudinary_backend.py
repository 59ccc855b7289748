"""Cloudinary storage backend - CDN media service with on-the-fly transformations.

Hey future me - we talk to Cloudinary's REST upload API directly with httpx instead of
pulling in their SDK. The only tricky bit is request signing:

    signature = sha1("folder=x&public_id=y&timestamp=123" + api_secret)

Params are sorted by key, file/api_key/resource_type are NOT part of the signature.

What makes this backend special: get_url() honors width/height/quality/format by
putting a transformation segment into the delivery URL
(".../image/upload/c_fill,w_1920,h_1080,q_90/wallpapers/foo.jpg"), so
generate_resolutions() uploads ONCE and just builds URLs.
"""

import hashlib
import logging
import time
from typing import Any

import httpx

from wallspot.config.settings import CloudinarySettings
from wallspot.domain.exceptions import UploadError
from wallspot.domain.ports.storage_backend import (
    IStorageBackend,
    StoredAsset,
    StorageProviderName,
)
from wallspot.infrastructure.storage.common import (
    BULK_RESOLUTIONS,
    DEFAULT_FOLDER,
    random_filename,
)
from wallspot.infrastructure.storage.http_pool import HttpClientPool

logger = logging.getLogger(__name__)

# Never signed, per Cloudinary docs
_UNSIGNED_PARAMS = frozenset({"file", "api_key", "resource_type", "cloud_name"})


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Compute the Cloudinary request signature."""
    to_sign = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if key not in _UNSIGNED_PARAMS and params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


class CloudinaryStorageBackend(IStorageBackend):
    """Uploads to Cloudinary, serves via res.cloudinary.com."""

    def __init__(
        self,
        settings: CloudinarySettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize backend.

        Args:
            settings: Cloudinary credentials
            client: Optional client (tests inject one with MockTransport). Defaults to
                the shared HttpClientPool client.
        """
        self._settings = settings
        self._client = client

    @property
    def provider_name(self) -> StorageProviderName:
        return StorageProviderName.CLOUDINARY

    @property
    def supports_transformations(self) -> bool:
        return True

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = await HttpClientPool.get_client(timeout=self._settings.upload_timeout)
        return self._client

    def _endpoint(self, action: str) -> str:
        base = self._settings.api_base_url.rstrip("/")
        return f"{base}/{self._settings.cloud_name}/image/{action}"

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        params = {k: v for k, v in params.items() if v not in (None, "")}
        params["timestamp"] = int(time.time())
        params["signature"] = sign_params(params, self._settings.api_secret)
        params["api_key"] = self._settings.api_key
        return {key: str(value) for key, value in params.items()}

    async def _post(
        self,
        action: str,
        data: dict[str, Any],
        files: dict[str, Any] | None = None,
        *,
        operation: str = "upload",
    ) -> dict[str, Any]:
        provider = self.provider_name.value
        if not self._settings.is_configured:
            raise UploadError(provider, "Cloudinary credentials not configured", operation)

        client = await self._get_client()
        try:
            response = await client.post(self._endpoint(action), data=data, files=files)
            response.raise_for_status()
            payload: Any = response.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200]
            raise UploadError(
                provider, f"HTTP {e.response.status_code}: {detail}", operation
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise UploadError(provider, str(e) or e.__class__.__name__, operation) from e

        if not isinstance(payload, dict):
            raise UploadError(provider, f"unexpected response: {payload!r:.200}", operation)
        if "error" in payload:
            error = payload["error"]
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            raise UploadError(provider, message, operation)
        return payload

    async def upload(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
        image_format: str | None = None,
    ) -> StoredAsset:
        public_id = filename or random_filename()
        data = self._signed(
            {
                "folder": (folder or DEFAULT_FOLDER).strip("/"),
                "public_id": public_id,
                "format": image_format,
            }
        )
        payload = await self._post("upload", data, files={"file": (public_id, buffer)})

        try:
            url = payload["secure_url"]
            asset_id = payload["public_id"]
        except KeyError as e:
            raise UploadError(
                self.provider_name.value, f"response is missing {e.args[0]!r}"
            ) from e

        asset = StoredAsset(
            url=url,
            provider_asset_id=asset_id,
            format=payload.get("format"),
            width=payload.get("width"),
            height=payload.get("height"),
            byte_size=payload.get("bytes"),
        )
        logger.debug("Uploaded %s to Cloudinary (%s bytes)", asset.provider_asset_id, asset.byte_size)
        return asset

    async def delete(self, provider_asset_id: str) -> None:
        payload = await self._post(
            "destroy", self._signed({"public_id": provider_asset_id}), operation="delete"
        )
        # "not found" is fine - delete is best-effort idempotent
        if payload.get("result") not in ("ok", "not found"):
            logger.warning(
                "Unexpected Cloudinary destroy result for %s: %s",
                provider_asset_id,
                payload.get("result"),
            )

    def get_url(
        self,
        provider_asset_id: str,
        *,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
        image_format: str | None = None,
    ) -> str:
        transformations: list[str] = []
        if width and height:
            transformations.append("c_fill")
        if width:
            transformations.append(f"w_{width}")
        if height:
            transformations.append(f"h_{height}")
        if quality:
            transformations.append(f"q_{quality}")

        base = self._settings.delivery_base_url.rstrip("/")
        parts = [base, self._settings.cloud_name, "image", "upload"]
        if transformations:
            parts.append(",".join(transformations))
        asset_path = f"{provider_asset_id}.{image_format}" if image_format else provider_asset_id
        parts.append(asset_path)
        return "/".join(parts)

    async def generate_resolutions(
        self,
        buffer: bytes,
        *,
        folder: str | None = None,
        filename: str | None = None,
    ) -> list[StoredAsset]:
        original = await self.upload(
            buffer,
            folder=folder,
            filename=f"{filename}-original" if filename else None,
        )
        results = [original]
        for spec in BULK_RESOLUTIONS:
            # No second upload - Cloudinary renders the size when the URL is first hit
            results.append(
                StoredAsset(
                    url=self.get_url(
                        original.provider_asset_id,
                        width=spec.width,
                        height=spec.height,
                        quality=90,
                    ),
                    provider_asset_id=f"{original.provider_asset_id}-{spec.slug}",
                    width=spec.width,
                    height=spec.height,
                )
            )
        return results
