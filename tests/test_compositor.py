from __future__ import annotations

import logging

import pytest
from PIL import Image

from cardrender.compositor import (
    ARTWORK_BASE,
    OUTCOME_FAILED,
    OUTCOME_IMAGE,
    OUTCOME_PLACEHOLDER,
    IconLibrary,
    decode_data_uri,
    draw_artwork,
    fit_within,
    paste_icon,
    rounded_mask,
)
from cardrender.errors import AssetDecodeFailure


class TestFitWithin:
    def test_tall_image_in_wide_box_is_height_limited(self) -> None:
        placement = fit_within((100, 200), (0, 0, 400, 200))
        assert placement.scale == pytest.approx(1.0)
        assert (placement.width, placement.height) == (100, 200)
        assert placement.x == 150
        assert placement.y == 0

    def test_wide_image_is_centered_vertically(self) -> None:
        placement = fit_within((400, 100), (10, 20, 200, 200))
        assert placement.scale == pytest.approx(0.5)
        assert (placement.width, placement.height) == (200, 50)
        assert (placement.x, placement.y) == (10, 95)

    @pytest.mark.parametrize(
        "src", [(100, 200), (640, 480), (1920, 1080), (37, 91), (500, 500), (3000, 10)]
    )
    def test_aspect_ratio_is_preserved(self, src) -> None:
        box = (40, 96, 805, 540)
        placement = fit_within(src, box)
        assert placement.width <= box[2]
        assert placement.height <= box[3]
        # Each side is off by at most half a pixel before rounding.
        assert abs(placement.width - src[0] * placement.scale) <= 0.5
        assert abs(placement.height - src[1] * placement.scale) <= 0.5
        assert placement.width == box[2] or placement.height == box[3]

    def test_rejects_empty_source(self) -> None:
        with pytest.raises(ValueError):
            fit_within((0, 10), (0, 0, 10, 10))


class TestDecodeDataUri:
    def test_valid_png(self, make_data_uri) -> None:
        image = decode_data_uri(make_data_uri((30, 60)))
        assert image.size == (30, 60)
        assert image.mode == "RGBA"

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "https://example.com/art.png",
            "data:image/png,rawbytes",
            "data:image/png;base64,@@not-base64@@",
            "data:image/png;base64,aGVsbG8gd29ybGQ=",
        ],
    )
    def test_invalid_inputs_raise(self, value) -> None:
        with pytest.raises(AssetDecodeFailure):
            decode_data_uri(value)


class TestDrawArtwork:
    box = (0, 0, 400, 200)

    def test_empty_art_draws_placeholder(self) -> None:
        canvas = Image.new("RGB", (400, 200), "white")
        result = draw_artwork(canvas, "", self.box)
        assert result.outcome == OUTCOME_PLACEHOLDER
        assert result.is_placeholder
        assert canvas.getpixel((200, 150)) == ARTWORK_BASE

    def test_invalid_art_degrades_without_raising(self, caplog) -> None:
        canvas = Image.new("RGB", (400, 200), "white")
        with caplog.at_level(logging.WARNING, logger="cardrender.compositor"):
            result = draw_artwork(canvas, "data:image/png;base64,AAAA", self.box)
        assert result.outcome == OUTCOME_FAILED
        assert result.is_placeholder
        assert result.placement is None
        assert "Artwork decode failed" in caplog.text

    def test_tall_art_is_centered_with_side_margins(self, make_data_uri) -> None:
        canvas = Image.new("RGB", (400, 200), "white")
        result = draw_artwork(canvas, make_data_uri((50, 100), (200, 30, 30, 255)), self.box)
        assert result.outcome == OUTCOME_IMAGE
        assert (result.placement.width, result.placement.height) == (100, 200)
        assert result.placement.x == 150
        assert canvas.getpixel((200, 100)) == (200, 30, 30)
        assert canvas.getpixel((30, 100)) == ARTWORK_BASE
        assert canvas.getpixel((370, 100)) == ARTWORK_BASE

    def test_corners_are_clipped(self) -> None:
        canvas = Image.new("RGB", (400, 200), (255, 255, 255))
        draw_artwork(canvas, "", self.box, radius=40)
        assert canvas.getpixel((0, 0)) == (255, 255, 255)
        assert canvas.getpixel((399, 199)) == (255, 255, 255)


class TestRoundedMask:
    def test_radius_is_clamped(self) -> None:
        mask = rounded_mask((20, 10), 50)
        assert mask.size == (20, 10)
        assert mask.getpixel((10, 5)) == 255
        assert mask.getpixel((0, 0)) == 0


class TestIconLibrary:
    def test_loads_icon_by_key(self, icon_dir) -> None:
        library = IconLibrary(icon_dir)
        icon = library.load("fire")
        assert icon is not None
        assert icon.size == (48, 48)
        assert library.load("fire") is icon
        assert library.missing == []

    def test_missing_icon_is_logged_and_skipped(self, icon_dir, caplog) -> None:
        library = IconLibrary(icon_dir)
        with caplog.at_level(logging.WARNING, logger="cardrender.compositor"):
            assert library.load("water") is None
        assert "water" in caplog.text
        assert library.missing == ["water"]

    def test_undecodable_icon(self, icon_dir) -> None:
        library = IconLibrary(icon_dir)
        assert library.load("broken") is None
        assert library.missing == ["broken"]

    @pytest.mark.parametrize("key", ["../fire", "sub/fire", "..", "", None])
    def test_keys_cannot_escape_directory(self, icon_dir, key) -> None:
        library = IconLibrary(icon_dir)
        assert library.resolve(key) is None
        assert library.load(key) is None

    def test_keys_are_matched_exactly(self, icon_dir) -> None:
        library = IconLibrary(icon_dir)
        assert library.resolve(" fire") == icon_dir / " fire.png"
        assert library.load(" fire") is None
        assert library.missing == [" fire"]

    def test_without_directory(self) -> None:
        assert IconLibrary(None).load("fire") is None


def test_paste_icon_fits_square(icon_dir) -> None:
    canvas = Image.new("RGB", (100, 100), "white")
    icon = IconLibrary(icon_dir).load("attack")
    placement = paste_icon(canvas, icon, (10, 10), 32)
    assert (placement.width, placement.height) == (32, 16)
    assert placement.y == 18
    assert canvas.getpixel((26, 26)) == (20, 20, 200)
