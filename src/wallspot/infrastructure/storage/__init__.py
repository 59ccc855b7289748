"""Storage backends (Cloudinary, S3, local disk) and their factory."""

from wallspot.infrastructure.storage.cloudinary_backend import CloudinaryStorageBackend
from wallspot.infrastructure.storage.factory import create_storage_backend
from wallspot.infrastructure.storage.http_pool import HttpClientPool
from wallspot.infrastructure.storage.local_backend import LocalStorageBackend
from wallspot.infrastructure.storage.s3_backend import S3StorageBackend

__all__ = [
    "CloudinaryStorageBackend",
    "HttpClientPool",
    "LocalStorageBackend",
    "S3StorageBackend",
    "create_storage_backend",
]
