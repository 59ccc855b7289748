"""Image Codec Port - decode, resize, re-encode and inspect uploaded images.

Hey future me - this is the LEAF of the ingestion pipeline. Everything here is CPU-bound
(decoding a 5K JPEG is not free!), so implementations must keep the event loop free -
the Pillow adapter runs every operation through asyncio.to_thread.

Contract highlights:
- decode_metadata() raises InvalidImageError for garbage bytes
- resize() with fit="cover" ALWAYS returns exactly (width, height)
- extract_dominant_color() NEVER raises - it returns a ColorExtraction that says
  whether the color is real or the "#000000" fallback
- validate() NEVER raises - callers check report.valid

Implementation:
- infrastructure/imaging/pillow_codec.py
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from wallspot.domain.value_objects.resolution import (
    DEFAULT_QUALITY,
    FitMode,
    OutputFormat,
)

FALLBACK_COLOR = "#000000"
HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-f]{6}$")


@dataclass(frozen=True)
class ImageMetadata:
    """Decoded facts about a buffer. format is lowercase ("jpeg", "png", "webp")."""

    width: int
    height: int
    format: str
    byte_size: int


@dataclass
class GeneratedVariant:
    """One rendition produced by the codec.

    The buffer is only kept until the upload step has consumed it.
    """

    resolution_name: str
    buffer: bytes = field(repr=False)
    width: int
    height: int
    byte_size: int
    format: str


@dataclass(frozen=True)
class ValidationLimits:
    """Constraints an upload is checked against. None disables a check."""

    max_width: int | None = None
    max_height: int | None = None
    max_byte_size: int | None = None
    allowed_formats: tuple[str, ...] | None = None


@dataclass
class ValidationReport:
    """Outcome of validate(): one message per violated constraint."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationReport":
        return cls(valid=not errors, errors=errors)


@dataclass(frozen=True)
class ColorExtraction:
    """Either a measured average color or the fallback.

    hex_color is ALWAYS a valid "#rrggbb" string, so callers that only want a color
    can use it blindly. `extracted` tells you whether it was measured.
    """

    hex_color: str
    extracted: bool
    error: str | None = None

    @classmethod
    def measured(cls, red: int, green: int, blue: int) -> "ColorExtraction":
        return cls(hex_color=f"#{red:02x}{green:02x}{blue:02x}", extracted=True)

    @classmethod
    def fallback(cls, error: str) -> "ColorExtraction":
        return cls(hex_color=FALLBACK_COLOR, extracted=False, error=error)


class IImageCodec(ABC):
    """Interface for image decode/transform backends."""

    @abstractmethod
    async def decode_metadata(self, buffer: bytes) -> ImageMetadata:
        """Read width/height/format.

        Raises:
            InvalidImageError: If the buffer is not a decodable image
        """
        ...

    @abstractmethod
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
        """Resize and re-encode.

        Raises:
            InvalidImageError: If the buffer cannot be decoded
            UnsupportedFormatError: If image_format is not jpeg/png/webp
        """
        ...

    @abstractmethod
    async def extract_dominant_color(self, buffer: bytes) -> ColorExtraction:
        """Mean color over all pixels. Never raises."""
        ...

    @abstractmethod
    async def validate(self, buffer: bytes, limits: ValidationLimits) -> ValidationReport:
        """Check the buffer against limits. Never raises."""
        ...

    @abstractmethod
    async def optimize(self, buffer: bytes, quality: int = 85) -> GeneratedVariant:
        """Re-encode as progressive JPEG without resizing."""
        ...

    @abstractmethod
    async def convert_format(
        self,
        buffer: bytes,
        image_format: OutputFormat,
        quality: int = DEFAULT_QUALITY,
    ) -> GeneratedVariant:
        """Re-encode to another format without resizing."""
        ...
