"""Domain value objects."""

from wallspot.domain.value_objects.resolution import (
    MEDIUM_PRESET,
    ORIGINAL_RESOLUTION_NAME,
    RESOLUTION_CATALOG,
    SUPPORTED_OUTPUT_FORMATS,
    THUMBNAIL_PRESET,
    FitMode,
    OutputFormat,
    ResolutionSpec,
    VariantPreset,
    get_resolution,
)
from wallspot.domain.value_objects.slug import slug_with_timestamp, slugify, unique_slug

__all__ = [
    "MEDIUM_PRESET",
    "ORIGINAL_RESOLUTION_NAME",
    "RESOLUTION_CATALOG",
    "SUPPORTED_OUTPUT_FORMATS",
    "THUMBNAIL_PRESET",
    "FitMode",
    "OutputFormat",
    "ResolutionSpec",
    "VariantPreset",
    "get_resolution",
    "slug_with_timestamp",
    "slugify",
    "unique_slug",
]
