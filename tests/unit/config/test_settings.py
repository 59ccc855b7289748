"""Tests for environment settings."""

import pytest

from wallspot.config import Settings, UploadSettings, get_settings
from wallspot.domain.ports.storage_backend import StorageProviderName


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.upload.max_file_size == 10 * 1024 * 1024
        assert settings.upload.allowed_formats == ["jpeg", "jpg", "png", "webp"]
        assert settings.storage.default_provider is StorageProviderName.CLOUDINARY
        assert settings.database.url.startswith("sqlite+aiosqlite")

    def test_nested_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WALLSPOT_UPLOAD__MAX_FILE_SIZE", "2048")
        monkeypatch.setenv("WALLSPOT_STORAGE__DEFAULT_PROVIDER", "s3")
        monkeypatch.setenv("WALLSPOT_STORAGE__S3__BUCKET", "walls")
        settings = Settings(_env_file=None)
        assert settings.upload.max_file_size == 2048
        assert settings.storage.default_provider is StorageProviderName.S3
        assert settings.storage.s3.bucket == "walls"

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestUploadSettings:
    def test_csv_lists_are_split(self) -> None:
        upload = UploadSettings(allowed_formats="JPEG, png", allowed_file_types="image/png")
        assert upload.allowed_formats == ["jpeg", "png"]
        assert upload.allowed_file_types == ["image/png"]

    def test_validation_limits(self) -> None:
        limits = UploadSettings(max_file_size=5000, max_width=100, max_height=50).validation_limits()
        assert limits.max_byte_size == 5000
        assert limits.max_width == 100
        assert limits.max_height == 50
        assert limits.allowed_formats == ("jpeg", "jpg", "png", "webp")

    def test_sweep_concurrency_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            UploadSettings(sweep_concurrency=0)
