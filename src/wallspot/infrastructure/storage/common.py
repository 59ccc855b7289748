"""Helpers shared by the storage backends (key naming, local bulk resize)."""

import logging
import secrets

from wallspot.domain.exceptions import DomainException
from wallspot.domain.ports.image_codec import IImageCodec
from wallspot.domain.ports.storage_backend import IStorageBackend, StoredAsset
from wallspot.domain.value_objects.resolution import ResolutionSpec, get_resolution

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "wallpapers"

_EXTENSIONS = {"jpeg": "jpg", "jpg": "jpg", "png": "png", "webp": "webp"}

# The fixed set generate_resolutions() produces. Smaller than the ingestion catalog on
# purpose - it is a quick bulk path, not the full rendition set.
BULK_RESOLUTIONS: tuple[ResolutionSpec, ...] = tuple(
    get_resolution(name) for name in ("1080p", "1440p", "4K", "Mobile HD", "Tablet")
)


def random_filename() -> str:
    """32 hex chars, used when the caller gives no filename."""
    return secrets.token_hex(16)


def build_object_key(
    folder: str | None, filename: str | None, image_format: str | None = None
) -> str:
    """"<folder>/<filename>[.ext]" with slashes normalized."""
    clean_folder = (folder or DEFAULT_FOLDER).strip("/")
    clean_name = (filename or random_filename()).strip("/")
    if image_format and "." not in clean_name:
        clean_name = f"{clean_name}.{_EXTENSIONS.get(image_format.lower(), image_format.lower())}"
    return f"{clean_folder}/{clean_name}" if clean_folder else clean_name


def content_type_for(image_format: str | None) -> str:
    fmt = (image_format or "jpeg").lower()
    if fmt == "jpg":
        fmt = "jpeg"
    return f"image/{fmt}"


async def upload_resized_set(
    backend: IStorageBackend,
    codec: IImageCodec,
    buffer: bytes,
    *,
    folder: str | None,
    filename: str | None,
) -> list[StoredAsset]:
    """Resize locally and upload the original + BULK_RESOLUTIONS one by one.

    For backends without URL-time transformations (S3, local disk). Failed entries are
    logged and skipped, like the ingestion catalog sweep.
    """
    base_name = filename or random_filename()
    results: list[StoredAsset] = []

    original = await backend.upload(
        buffer, folder=folder, filename=f"{base_name}-original"
    )
    results.append(original)

    for spec in BULK_RESOLUTIONS:
        try:
            variant = await codec.resize(
                buffer, spec.width, spec.height, quality=90, resolution_name=spec.name
            )
            asset = await backend.upload(
                variant.buffer,
                folder=folder,
                filename=f"{base_name}-{spec.slug}",
                image_format=variant.format,
            )
        except DomainException as e:
            logger.warning(
                "Failed to generate %s resolution via %s: %s",
                spec.name,
                backend.provider_name.value,
                e.message,
            )
            continue
        results.append(asset)

    return results
