"""Resolution policy - the fixed catalog of named target sizes.

Hey future me - this catalog is POLICY, not user input. Every upload gets exactly these
renditions, in exactly this order (the persistence layer and the download page both rely
on the order). Don't make it configurable per call!

Note the overlap: the catalog has its own "Thumbnail" (400x300, q90) and "Medium"
(800x600, q90) entries AND the pipeline separately generates THUMBNAIL_PRESET (q80) and
MEDIUM_PRESET (q85) for the wallpaper row's thumbnail_url / medium_url. So every wallpaper
ends up with both. Looks like accidental duplication, but it is what the gallery expects -
keep both until product decides otherwise.
"""

from dataclasses import dataclass
from typing import Literal

FitMode = Literal["cover", "contain", "fill", "inside", "outside"]
OutputFormat = Literal["jpeg", "png", "webp"]

SUPPORTED_OUTPUT_FORMATS: frozenset[str] = frozenset({"jpeg", "png", "webp"})
DEFAULT_QUALITY = 90


@dataclass(frozen=True)
class ResolutionSpec:
    """A named target box every rendition is center-cropped to."""

    name: str
    width: int
    height: int

    @property
    def slug(self) -> str:
        """Filename-safe suffix: "Mobile HD" -> "mobile-hd"."""
        return "-".join(self.name.lower().split())

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def __str__(self) -> str:
        return f"{self.name} ({self.width}x{self.height})"


@dataclass(frozen=True)
class VariantPreset:
    """Fixed-parameter rendition used directly by the pipeline (thumbnail/medium)."""

    name: str
    width: int
    height: int
    quality: int
    image_format: OutputFormat = "jpeg"
    fit: FitMode = "cover"


RESOLUTION_CATALOG: tuple[ResolutionSpec, ...] = (
    ResolutionSpec("1080p", 1920, 1080),
    ResolutionSpec("1440p", 2560, 1440),
    ResolutionSpec("4K", 3840, 2160),
    ResolutionSpec("5K", 5120, 2880),
    ResolutionSpec("Mobile HD", 1080, 1920),
    ResolutionSpec("Mobile 2K", 1440, 2560),
    ResolutionSpec("Tablet", 1536, 2048),
    ResolutionSpec("Thumbnail", 400, 300),
    ResolutionSpec("Medium", 800, 600),
)

THUMBNAIL_PRESET = VariantPreset(name="thumbnail", width=400, height=300, quality=80)
MEDIUM_PRESET = VariantPreset(name="medium", width=800, height=600, quality=85)

# Pseudo-variant: no resize, source dimensions preserved
ORIGINAL_RESOLUTION_NAME = "Original"


def get_resolution(name: str) -> ResolutionSpec:
    """Look up a catalog entry by name (case-insensitive).

    Raises:
        KeyError: If the name is not in the catalog
    """
    wanted = name.strip().lower()
    for spec in RESOLUTION_CATALOG:
        if spec.name.lower() == wanted:
            return spec
    raise KeyError(name)
