"""Configuration module for Wallspot."""

from .settings import (
    CloudinarySettings,
    DatabaseSettings,
    LocalStorageSettings,
    LoggingSettings,
    S3Settings,
    Settings,
    StorageSettings,
    UploadSettings,
    get_settings,
)

__all__ = [
    "CloudinarySettings",
    "DatabaseSettings",
    "LocalStorageSettings",
    "LoggingSettings",
    "S3Settings",
    "Settings",
    "StorageSettings",
    "UploadSettings",
    "get_settings",
]
