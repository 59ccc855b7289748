"""Slug helpers used to derive storage filenames and wallpaper URLs."""

import re
import threading
import time

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")

_clock_lock = threading.Lock()
_last_stamp_ms = 0


def slugify(text: str) -> str:
    """Turn a title into a lowercase, hyphen-separated slug.

    "Sunset Over Hills!" -> "sunset-over-hills"
    """
    slug = _NON_WORD.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


def unique_slug(base_slug: str, existing: set[str] | list[str]) -> str:
    """Append -1, -2, ... until the slug no longer collides."""
    taken = set(existing)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def _to_base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def slug_with_timestamp(text: str) -> str:
    """Slug plus a base-36 millisecond timestamp suffix.

    This is the default unique-name provider for ingestion - two uploads with the same
    title still get different storage keys.
    """
    global _last_stamp_ms
    base = slugify(text) or "wallpaper"
    with _clock_lock:
        # Same millisecond twice -> bump, so the suffix is strictly increasing
        stamp = max(time.time_ns() // 1_000_000, _last_stamp_ms + 1)
        _last_stamp_ms = stamp
    return f"{base}-{_to_base36(stamp)}"
