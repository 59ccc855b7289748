"""Tests for the S3 backend (boto3 client replaced by a MagicMock)."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from wallspot.config.settings import S3Settings
from wallspot.domain.exceptions import UploadError
from wallspot.domain.ports.storage_backend import StorageProviderName
from wallspot.infrastructure.imaging.pillow_codec import PillowImageCodec
from wallspot.infrastructure.storage.s3_backend import S3StorageBackend


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def backend(s3_client: MagicMock) -> S3StorageBackend:
    settings = S3Settings(bucket="walls", region="eu-central-1")
    return S3StorageBackend(settings, PillowImageCodec(), client=s3_client)


class TestS3Upload:
    @pytest.mark.asyncio
    async def test_put_object_and_asset(self, backend, s3_client, make_image) -> None:
        buffer = make_image(300, 200)
        asset = await backend.upload(buffer, folder="wallpapers/original", filename="sunset")

        s3_client.put_object.assert_called_once()
        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "walls"
        assert kwargs["Key"] == "wallpapers/original/sunset.jpg"
        assert kwargs["ContentType"] == "image/jpeg"
        assert kwargs["Body"] == buffer

        assert asset.provider_asset_id == "wallpapers/original/sunset.jpg"
        assert asset.url == "https://walls.s3.eu-central-1.amazonaws.com/wallpapers/original/sunset.jpg"
        assert (asset.width, asset.height) == (300, 200)
        assert asset.byte_size == len(buffer)

    @pytest.mark.asyncio
    async def test_public_base_url_wins(self, s3_client, make_image) -> None:
        settings = S3Settings(bucket="walls", public_base_url="https://cdn.example.com/")
        backend = S3StorageBackend(settings, PillowImageCodec(), client=s3_client)
        asset = await backend.upload(make_image(10, 10), folder="w", filename="a", image_format="png")
        assert asset.url == "https://cdn.example.com/w/a.png"

    @pytest.mark.asyncio
    async def test_client_error_becomes_upload_error(self, backend, s3_client, make_image) -> None:
        s3_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        with pytest.raises(UploadError) as exc_info:
            await backend.upload(make_image(10, 10), filename="a")
        assert exc_info.value.provider == "s3"
        assert isinstance(exc_info.value.__cause__, ClientError)

    @pytest.mark.asyncio
    async def test_bad_endpoint_becomes_upload_error(self, make_image) -> None:
        settings = S3Settings(bucket="walls", endpoint_url="not a url")
        backend = S3StorageBackend(settings, PillowImageCodec())
        with pytest.raises(UploadError, match="Invalid endpoint") as exc_info:
            await backend.upload(make_image(10, 10), filename="a")
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_missing_bucket(self, s3_client) -> None:
        backend = S3StorageBackend(S3Settings(), PillowImageCodec(), client=s3_client)
        with pytest.raises(UploadError, match="bucket not configured"):
            await backend.upload(b"data")
        s3_client.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_image_bytes_are_still_stored(self, backend, s3_client) -> None:
        asset = await backend.upload(b"not an image", filename="blob")
        assert asset.width is None
        s3_client.put_object.assert_called_once()


class TestS3Other:
    @pytest.mark.asyncio
    async def test_delete(self, backend, s3_client) -> None:
        await backend.delete("wallpapers/a.jpg")
        s3_client.delete_object.assert_called_once_with(Bucket="walls", Key="wallpapers/a.jpg")

    @pytest.mark.asyncio
    async def test_failed_delete_is_reported_as_delete(self, backend, s3_client) -> None:
        s3_client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "DeleteObject"
        )
        with pytest.raises(UploadError) as exc_info:
            await backend.delete("wallpapers/a.jpg")
        assert exc_info.value.operation == "delete"
        assert exc_info.value.message.startswith("s3 delete failed:")

    def test_get_url_ignores_transformations(self, backend) -> None:
        plain = backend.get_url("w/a.jpg")
        assert backend.get_url("w/a.jpg", width=100, height=100, quality=10) == plain
        assert backend.supports_transformations is False
        assert backend.provider_name is StorageProviderName.S3

    @pytest.mark.asyncio
    async def test_generate_resolutions_resizes_locally(self, backend, s3_client, make_image) -> None:
        assets = await backend.generate_resolutions(make_image(400, 300), folder="w", filename="x")
        # original + 1080p, 1440p, 4K, Mobile HD, Tablet
        assert len(assets) == 6
        assert s3_client.put_object.call_count == 6
        assert (assets[1].width, assets[1].height) == (1920, 1080)
        assert assets[4].provider_asset_id == "w/x-mobile-hd.jpg"
