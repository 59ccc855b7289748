"""Tests for the storage backend factory."""

import pytest

from wallspot.config.settings import S3Settings, StorageSettings
from wallspot.domain.exceptions import ConfigurationError
from wallspot.domain.ports.storage_backend import StorageProviderName
from wallspot.infrastructure.imaging.pillow_codec import PillowImageCodec
from wallspot.infrastructure.storage import (
    CloudinaryStorageBackend,
    LocalStorageBackend,
    S3StorageBackend,
    create_storage_backend,
)
from wallspot.infrastructure.storage.common import build_object_key
from wallspot.infrastructure.storage.factory import resolve_provider_name


class TestCreateStorageBackend:
    def test_each_provider(self) -> None:
        settings = StorageSettings(s3=S3Settings(bucket="walls"))
        codec = PillowImageCodec()
        assert isinstance(create_storage_backend("cloudinary", settings, codec), CloudinaryStorageBackend)
        assert isinstance(create_storage_backend(StorageProviderName.S3, settings, codec), S3StorageBackend)
        assert isinstance(create_storage_backend("LOCAL", settings, codec), LocalStorageBackend)

    def test_s3_without_bucket_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="bucket"):
            create_storage_backend("s3", StorageSettings(), PillowImageCodec())

    def test_unknown_name_falls_back_to_default(self) -> None:
        settings = StorageSettings(default_provider=StorageProviderName.LOCAL)
        backend = create_storage_backend("ftp", settings, PillowImageCodec())
        assert backend.provider_name is StorageProviderName.LOCAL

    def test_resolve_provider_name(self) -> None:
        assert resolve_provider_name(" S3 ", StorageProviderName.LOCAL) is StorageProviderName.S3
        assert resolve_provider_name("nope", StorageProviderName.LOCAL) is StorageProviderName.LOCAL


class TestBuildObjectKey:
    def test_defaults_and_extension(self) -> None:
        assert build_object_key(None, "a", "jpeg") == "wallpapers/a.jpg"
        assert build_object_key("/w/x/", "/b/", None) == "w/x/b"
        assert len(build_object_key("w", None).split("/")[1]) == 32
