"""Tests for slug helpers."""

import re

from wallspot.domain.value_objects import slug_with_timestamp, slugify, unique_slug


class TestSlugify:
    def test_basic_title(self) -> None:
        assert slugify("Sunset Over Hills") == "sunset-over-hills"

    def test_strips_punctuation(self) -> None:
        assert slugify("Hello, World!") == "hello-world"

    def test_collapses_separators(self) -> None:
        assert slugify("  a__b -- c  ") == "a-b-c"

    def test_trims_leading_and_trailing_hyphens(self) -> None:
        assert slugify("--edge--") == "edge"

    def test_empty_input(self) -> None:
        assert slugify("!!!") == ""


class TestUniqueSlug:
    def test_no_collision_keeps_base(self) -> None:
        assert unique_slug("sunset", {"forest"}) == "sunset"

    def test_appends_counter(self) -> None:
        assert unique_slug("sunset", {"sunset", "sunset-1"}) == "sunset-2"


class TestSlugWithTimestamp:
    def test_format(self) -> None:
        slug = slug_with_timestamp("Sunset Over Hills")
        assert re.fullmatch(r"sunset-over-hills-[0-9a-z]+", slug)

    def test_unique_for_same_title(self) -> None:
        """Hey future me - same title, same millisecond must still differ."""
        slugs = {slug_with_timestamp("Same") for _ in range(50)}
        assert len(slugs) == 50

    def test_falls_back_to_wallpaper(self) -> None:
        assert slug_with_timestamp("???").startswith("wallpaper-")
