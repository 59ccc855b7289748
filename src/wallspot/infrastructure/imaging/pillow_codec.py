"""Pillow implementation of the image codec port.

Hey future me - Pillow is CPU-bound and holds the GIL for most of the heavy lifting,
so EVERY public method pushes the real work to a worker thread via asyncio.to_thread.
Otherwise one 5K upload would freeze every other request on the event loop!

The sync helpers (_decode_sync, _resize_sync, ...) are plain functions of bytes so they
are trivial to run in a thread and to test directly.
"""

import asyncio
import logging
from io import BytesIO

from PIL import Image, ImageOps, ImageStat, UnidentifiedImageError

from wallspot.domain.exceptions import InvalidImageError, UnsupportedFormatError
from wallspot.domain.ports.image_codec import (
    ColorExtraction,
    GeneratedVariant,
    IImageCodec,
    ImageMetadata,
    ValidationLimits,
    ValidationReport,
)
from wallspot.domain.value_objects.resolution import (
    DEFAULT_QUALITY,
    SUPPORTED_OUTPUT_FORMATS,
    FitMode,
    OutputFormat,
)

logger = logging.getLogger(__name__)

# Everything Pillow throws at us for garbage/truncated/bomb input
_DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError)

# Pillow's format names differ from ours
_PIL_FORMATS: dict[str, str] = {"jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}

# Pillow names multi-frame camera JPEGs "MPO", the bytes are still a JPEG
_FORMAT_ALIASES: dict[str, str] = {"mpo": "jpeg"}

_RESAMPLE = Image.Resampling.LANCZOS


def _open(buffer: bytes, *, load: bool = True) -> Image.Image:
    try:
        image = Image.open(BytesIO(buffer))
        if load:
            image.load()
    except _DECODE_ERRORS as e:
        raise InvalidImageError(f"Not a decodable image: {e}") from e
    return image


def _decode_sync(buffer: bytes) -> ImageMetadata:
    # Header only, pixel data is decoded where it is actually needed
    with _open(buffer, load=False) as image:
        image_format = (image.format or "unknown").lower()
        return ImageMetadata(
            width=image.width,
            height=image.height,
            format=_FORMAT_ALIASES.get(image_format, image_format),
            byte_size=len(buffer),
        )


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    has_alpha = image.mode in ("LA", "PA") or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def _fit(image: Image.Image, width: int, height: int, fit: FitMode) -> Image.Image:
    """Apply one of the sharp-style fit policies."""
    if fit == "cover":
        # Scale so the SHORTER side matches, crop the overflow from the center.
        # ImageOps.fit always returns exactly (width, height).
        return ImageOps.fit(image, (width, height), method=_RESAMPLE, centering=(0.5, 0.5))
    if fit == "fill":
        return image.resize((width, height), _RESAMPLE)
    if fit == "contain":
        # Letterbox into the exact box
        background = (0, 0, 0, 0) if image.mode == "RGBA" else (0, 0, 0)
        return ImageOps.pad(image, (width, height), method=_RESAMPLE, color=background)
    if fit == "inside":
        return ImageOps.contain(image, (width, height), method=_RESAMPLE)
    if fit == "outside":
        scale = max(width / image.width, height / image.height)
        size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
        return image.resize(size, _RESAMPLE)
    raise ValueError(f"Unknown fit mode: {fit}")


def _encode(image: Image.Image, image_format: str, quality: int, progressive: bool = False) -> bytes:
    pil_format = _PIL_FORMATS[image_format]
    if image_format == "jpeg" and image.mode != "RGB":
        # JPEG has no alpha / palette
        image = image.convert("RGB")
    elif image.mode not in ("RGB", "RGBA", "L", "LA"):
        image = image.convert("RGBA" if "transparency" in image.info else "RGB")

    output = BytesIO()
    if image_format == "jpeg":
        image.save(output, format=pil_format, quality=quality, optimize=True, progressive=progressive)
    elif image_format == "webp":
        image.save(output, format=pil_format, quality=quality, method=6)
    else:
        # PNG is lossless, quality maps to nothing useful
        image.save(output, format=pil_format, optimize=True)
    return output.getvalue()


def _check_output(image_format: str, quality: int) -> str:
    normalized = image_format.lower()
    if normalized == "jpg":
        normalized = "jpeg"
    if normalized not in SUPPORTED_OUTPUT_FORMATS:
        raise UnsupportedFormatError(image_format)
    if not 1 <= quality <= 100:
        raise ValueError(f"Quality must be between 1 and 100, got {quality}")
    return normalized


def _resize_sync(
    buffer: bytes,
    width: int,
    height: int,
    quality: int,
    image_format: str,
    fit: FitMode,
    resolution_name: str,
) -> GeneratedVariant:
    normalized = _check_output(image_format, quality)
    if width <= 0 or height <= 0:
        raise ValueError(f"Target size must be positive, got {width}x{height}")

    with _open(buffer) as image:
        source = _normalize_mode(image)
        resized = _fit(source, width, height, fit)
        data = _encode(resized, normalized, quality)
        return GeneratedVariant(
            resolution_name=resolution_name,
            buffer=data,
            width=resized.width,
            height=resized.height,
            byte_size=len(data),
            format=normalized,
        )


def _reencode_sync(
    buffer: bytes,
    image_format: str,
    quality: int,
    progressive: bool,
    resolution_name: str,
) -> GeneratedVariant:
    normalized = _check_output(image_format, quality)
    with _open(buffer) as image:
        data = _encode(image, normalized, quality, progressive=progressive)
        return GeneratedVariant(
            resolution_name=resolution_name,
            buffer=data,
            width=image.width,
            height=image.height,
            byte_size=len(data),
            format=normalized,
        )


def _mean_color_sync(buffer: bytes) -> ColorExtraction:
    """Arithmetic mean per RGB channel. Not k-means, just fast."""
    try:
        with Image.open(BytesIO(buffer)) as image:
            rgb = image.convert("RGB")
            red, green, blue = (round(channel) for channel in ImageStat.Stat(rgb).mean)
    except _DECODE_ERRORS as e:
        return ColorExtraction.fallback(str(e) or e.__class__.__name__)
    return ColorExtraction.measured(red, green, blue)


def _validate_sync(buffer: bytes, limits: ValidationLimits) -> ValidationReport:
    errors: list[str] = []

    # Size check needs no decoding, so it is reported even for garbage bytes
    if limits.max_byte_size is not None and len(buffer) > limits.max_byte_size:
        max_mb = limits.max_byte_size / (1024 * 1024)
        actual_mb = len(buffer) / (1024 * 1024)
        errors.append(f"File size {actual_mb:.2f}MB exceeds maximum of {max_mb:.2f}MB")

    try:
        metadata = _decode_sync(buffer)
    except InvalidImageError:
        errors.append("Not a decodable image")
        return ValidationReport.from_errors(errors)

    if limits.allowed_formats is not None:
        allowed = {fmt.lower() for fmt in limits.allowed_formats}
        if metadata.format not in allowed:
            errors.append(
                f"Invalid format '{metadata.format}'. Allowed: {', '.join(limits.allowed_formats)}"
            )

    if limits.max_width is not None and metadata.width > limits.max_width:
        errors.append(f"Width {metadata.width}px exceeds maximum of {limits.max_width}px")

    if limits.max_height is not None and metadata.height > limits.max_height:
        errors.append(f"Height {metadata.height}px exceeds maximum of {limits.max_height}px")

    return ValidationReport.from_errors(errors)


class PillowImageCodec(IImageCodec):
    """Image codec backed by Pillow, run off the event loop."""

    async def decode_metadata(self, buffer: bytes) -> ImageMetadata:
        return await asyncio.to_thread(_decode_sync, buffer)

    async def resize(
        self,
        buffer: bytes,
        width: int,
        height: int,
        *,
        quality: int = DEFAULT_QUALITY,
        image_format: OutputFormat = "jpeg",
        fit: FitMode = "cover",
        resolution_name: str | None = None,
    ) -> GeneratedVariant:
        name = resolution_name or f"{width}x{height}"
        variant = await asyncio.to_thread(
            _resize_sync, buffer, width, height, quality, image_format, fit, name
        )
        logger.debug(
            "Resized to %s: %dx%d %s (%d bytes)",
            name,
            variant.width,
            variant.height,
            variant.format,
            variant.byte_size,
        )
        return variant

    async def extract_dominant_color(self, buffer: bytes) -> ColorExtraction:
        result = await asyncio.to_thread(_mean_color_sync, buffer)
        if not result.extracted:
            logger.warning("Color extraction failed, using %s: %s", result.hex_color, result.error)
        return result

    async def validate(self, buffer: bytes, limits: ValidationLimits) -> ValidationReport:
        return await asyncio.to_thread(_validate_sync, buffer, limits)

    async def optimize(self, buffer: bytes, quality: int = 85) -> GeneratedVariant:
        return await asyncio.to_thread(_reencode_sync, buffer, "jpeg", quality, True, "optimized")

    async def convert_format(
        self,
        buffer: bytes,
        image_format: OutputFormat,
        quality: int = DEFAULT_QUALITY,
    ) -> GeneratedVariant:
        return await asyncio.to_thread(
            _reencode_sync, buffer, image_format, quality, False, "converted"
        )
