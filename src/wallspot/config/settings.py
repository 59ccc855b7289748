"""Application settings loaded from the environment.

Hey future me - these are the STATIC settings (env vars / .env file). Which storage
backend is *active* is NOT decided here - that lives in the storage_providers table
so an admin can switch it without a restart (see StorageSelector). The storage
section below only carries credentials and the fallback provider name.

Nested sections use "__" as delimiter:
    WALLSPOT_UPLOAD__MAX_FILE_SIZE=20971520
    WALLSPOT_STORAGE__S3__BUCKET=my-wallpapers
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wallspot.domain.ports.image_codec import ValidationLimits
from wallspot.domain.ports.storage_backend import StorageProviderName


class DatabaseSettings(BaseModel):
    """Relational store connection settings."""

    url: str = "sqlite+aiosqlite:///./wallspot.db"
    echo: bool = False
    pool_pre_ping: bool = True
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600


class UploadSettings(BaseModel):
    """Limits applied to admin uploads before any storage side effect."""

    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0)
    allowed_file_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp"]
    )
    max_width: int = 10000
    max_height: int = 10000
    allowed_formats: list[str] = Field(
        default_factory=lambda: ["jpeg", "jpg", "png", "webp"]
    )
    # Delete already-uploaded assets when the DB write fails afterwards
    compensate_on_persist_failure: bool = True
    # Max catalog entries resized/uploaded at the same time
    sweep_concurrency: int = Field(default=3, ge=1)

    # Env vars arrive as "image/jpeg,image/png" - accept the comma form too.
    @field_validator("allowed_file_types", "allowed_formats", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        if isinstance(value, str):
            return [item.strip().lower() for item in value.split(",") if item.strip()]
        return value

    def validation_limits(self) -> ValidationLimits:
        """Build the limits object the ingestion pipeline validates against."""
        return ValidationLimits(
            max_width=self.max_width,
            max_height=self.max_height,
            max_byte_size=self.max_file_size,
            allowed_formats=tuple(self.allowed_formats),
        )


class CloudinarySettings(BaseModel):
    """Credentials for the CDN media service backend."""

    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = ""
    api_base_url: str = "https://api.cloudinary.com/v1_1"
    delivery_base_url: str = "https://res.cloudinary.com"
    upload_timeout: float = 60.0

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


class S3Settings(BaseModel):
    """Credentials for the bucket object storage backend."""

    bucket: str = ""
    region: str = "us-east-1"
    access_key_id: str | None = None
    secret_access_key: str | None = None
    endpoint_url: str | None = None
    # Set this when the bucket sits behind CloudFront/R2 custom domain
    public_base_url: str | None = None


class LocalStorageSettings(BaseModel):
    """Filesystem backend, mostly for development."""

    root_dir: str = "./media"
    public_base_url: str = "http://localhost:8000/media"


class StorageSettings(BaseModel):
    """Storage backend credentials and fallback selection."""

    default_provider: StorageProviderName = StorageProviderName.CLOUDINARY
    default_folder: str = "wallpapers"
    cloudinary: CloudinarySettings = Field(default_factory=CloudinarySettings)
    s3: S3Settings = Field(default_factory=S3Settings)
    local: LocalStorageSettings = Field(default_factory=LocalStorageSettings)


class LoggingSettings(BaseModel):
    """Log output settings."""

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="WALLSPOT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "wallspot"
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Cached so every Depends(get_settings) sees the same object. Tests that tweak env vars
# must call get_settings.cache_clear() first!
@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
