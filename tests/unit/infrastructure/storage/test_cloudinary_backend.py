"""Tests for the Cloudinary backend (httpx.MockTransport, no network)."""

import hashlib
import json
from urllib.parse import parse_qs

import httpx
import pytest

from wallspot.config.settings import CloudinarySettings
from wallspot.domain.exceptions import UploadError
from wallspot.domain.ports.storage_backend import StorageProviderName
from wallspot.infrastructure.storage.cloudinary_backend import (
    CloudinaryStorageBackend,
    sign_params,
)

SETTINGS = CloudinarySettings(cloud_name="demo", api_key="key123", api_secret="shh")


def _form_fields(request: httpx.Request) -> dict[str, str]:
    """Pull plain form fields out of a multipart or urlencoded body."""
    body = request.read()
    content_type = request.headers["content-type"]
    if content_type.startswith("application/x-www-form-urlencoded"):
        return {key: values[0] for key, values in parse_qs(body.decode()).items()}

    boundary = content_type.split("boundary=")[1].encode()
    fields: dict[str, str] = {}
    for part in body.split(b"--" + boundary):
        if b'name="' not in part or b"filename=" in part:
            continue
        header, _, value = part.partition(b"\r\n\r\n")
        name = header.split(b'name="')[1].split(b'"')[0].decode()
        fields[name] = value.rstrip(b"\r\n").decode()
    return fields


def _backend(handler) -> CloudinaryStorageBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CloudinaryStorageBackend(SETTINGS, client=client)


class TestSignParams:
    def test_sorted_and_secret_appended(self) -> None:
        params = {"timestamp": 1700000000, "public_id": "sunset", "folder": "wallpapers"}
        expected = hashlib.sha1(
            b"folder=wallpapers&public_id=sunset&timestamp=1700000000shh"
        ).hexdigest()
        assert sign_params(params, "shh") == expected

    def test_unsigned_and_empty_params_are_skipped(self) -> None:
        signed = sign_params({"public_id": "a", "api_key": "k", "file": "x", "format": ""}, "s")
        assert signed == hashlib.sha1(b"public_id=as").hexdigest()


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_returns_stored_asset(self) -> None:
        seen: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["fields"] = _form_fields(request)
            return httpx.Response(
                200,
                json={
                    "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/wallpapers/original/sunset.jpg",
                    "public_id": "wallpapers/original/sunset",
                    "format": "jpg",
                    "width": 4000,
                    "height": 3000,
                    "bytes": 2048,
                },
            )

        backend = _backend(handler)
        asset = await backend.upload(
            b"\xff\xd8fake", folder="wallpapers/original", filename="sunset", image_format="jpeg"
        )

        assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        fields = seen["fields"]
        assert fields["folder"] == "wallpapers/original"
        assert fields["public_id"] == "sunset"
        assert fields["api_key"] == "key123"
        assert "signature" in fields and "timestamp" in fields
        assert asset.provider_asset_id == "wallpapers/original/sunset"
        assert (asset.width, asset.height, asset.byte_size) == (4000, 3000, 2048)

    @pytest.mark.asyncio
    async def test_random_filename_when_missing(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(_form_fields(request))
            return httpx.Response(200, json={"secure_url": "u", "public_id": "p"})

        await _backend(handler).upload(b"data")
        assert len(seen["public_id"]) == 32
        assert seen["folder"] == "wallpapers"

    @pytest.mark.asyncio
    async def test_http_error_becomes_upload_error(self) -> None:
        backend = _backend(lambda request: httpx.Response(401, text="Invalid Signature"))
        with pytest.raises(UploadError) as exc_info:
            await backend.upload(b"data", filename="x")
        assert exc_info.value.provider == "cloudinary"
        assert "401" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_payload_becomes_upload_error(self) -> None:
        backend = _backend(
            lambda request: httpx.Response(200, json={"error": {"message": "Quota exceeded"}})
        )
        with pytest.raises(UploadError, match="Quota exceeded"):
            await backend.upload(b"data", filename="x")

    @pytest.mark.asyncio
    async def test_transport_error_becomes_upload_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UploadError) as exc_info:
            await _backend(handler).upload(b"data", filename="x")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_success_without_secure_url_becomes_upload_error(self) -> None:
        backend = _backend(lambda request: httpx.Response(200, json={"public_id": "w/a"}))
        with pytest.raises(UploadError, match="secure_url") as exc_info:
            await backend.upload(b"data", filename="a")
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_non_object_json_becomes_upload_error(self) -> None:
        backend = _backend(lambda request: httpx.Response(200, json=["unexpected"]))
        with pytest.raises(UploadError, match="unexpected response"):
            await backend.upload(b"data", filename="a")

    @pytest.mark.asyncio
    async def test_missing_credentials(self) -> None:
        backend = CloudinaryStorageBackend(CloudinarySettings(), client=httpx.AsyncClient())
        with pytest.raises(UploadError, match="not configured"):
            await backend.upload(b"data")


class TestDelete:
    @pytest.mark.parametrize("result", ["ok", "not found"])
    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, result: str) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen.update(_form_fields(request))
            return httpx.Response(200, content=json.dumps({"result": result}))

        await _backend(handler).delete("wallpapers/original/sunset")
        assert seen["url"].endswith("/demo/image/destroy")
        assert seen["public_id"] == "wallpapers/original/sunset"


    @pytest.mark.asyncio
    async def test_failed_destroy_is_reported_as_delete(self) -> None:
        backend = _backend(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(UploadError) as exc_info:
            await backend.delete("wallpapers/original/sunset")
        assert exc_info.value.operation == "delete"
        assert exc_info.value.message.startswith("cloudinary delete failed: HTTP 500")


class TestGetUrl:
    def test_transformations_in_url(self) -> None:
        backend = CloudinaryStorageBackend(SETTINGS)
        url = backend.get_url("wallpapers/a", width=1920, height=1080, quality=90, image_format="webp")
        assert url == "https://res.cloudinary.com/demo/image/upload/c_fill,w_1920,h_1080,q_90/wallpapers/a.webp"

    def test_plain_url(self) -> None:
        backend = CloudinaryStorageBackend(SETTINGS)
        assert backend.get_url("wallpapers/a") == "https://res.cloudinary.com/demo/image/upload/wallpapers/a"

    def test_capabilities(self) -> None:
        backend = CloudinaryStorageBackend(SETTINGS)
        assert backend.provider_name is StorageProviderName.CLOUDINARY
        assert backend.supports_transformations is True


class TestGenerateResolutions:
    @pytest.mark.asyncio
    async def test_uploads_once_and_builds_urls(self) -> None:
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            return httpx.Response(200, json={"secure_url": "https://x/orig.jpg", "public_id": "w/orig"})

        assets = await _backend(handler).generate_resolutions(b"data", folder="w", filename="orig")
        assert len(calls) == 1
        assert len(assets) == 6
        assert "c_fill,w_1920,h_1080,q_90" in assets[1].url
        assert (assets[1].width, assets[1].height) == (1920, 1080)
