"""Tests for palette.color — luminance, distance, nearest color, hex parsing."""

import logging

import numpy as np
import pytest

from errors import ColorParseError, InvalidPaletteError
from palette.color import (
    as_palette,
    clamp8,
    distance_squared,
    hex_to_rgb,
    index_for_luminance,
    index_for_luminance_array,
    luminance,
    luminance_array,
    nearest,
    nearest_indices,
    parse_hex,
    rgb_to_hex,
    sort_by_luminance,
    to_uint8,
    validate_frame,
)

pytestmark = pytest.mark.smoke


class TestLuminance:
    def test_extremes(self):
        assert luminance(0, 0, 0) == 0
        assert luminance(255, 255, 255) == 255

    def test_truncates_not_rounds(self):
        # 100 * 77 / 256 = 30.08 -> 30 ; 150 / 256 = 0.59 -> 0
        assert luminance(100, 0, 0) == 30
        assert luminance(0, 1, 0) == 0
        assert luminance(0, 0, 9) == 1

    def test_array_matches_scalar(self, random_frame):
        rgb = random_frame[:, :, :3]
        lum = luminance_array(rgb)
        for y, x in [(0, 0), (5, 7), (19, 23)]:
            assert lum[y, x] == luminance(*rgb[y, x])


class TestNearest:
    def test_weighted_distance(self):
        assert distance_squared((0, 0, 0), (10, 0, 0)) == pytest.approx(30.0)
        assert distance_squared((0, 0, 0), (0, 10, 0)) == pytest.approx(59.0)
        assert distance_squared((0, 0, 0), (0, 0, 10)) == pytest.approx(11.0)

    def test_first_entry_wins_ties(self):
        assert nearest((10, 0, 0), [(0, 0, 0), (20, 0, 0)]) == (0, 0, 0)
        assert nearest((10, 0, 0), [(20, 0, 0), (0, 0, 0)]) == (20, 0, 0)

    def test_blue_error_costs_less_than_green(self):
        # 20 units of blue (44.0) beat 10 units of green (59.0)
        assert nearest((0, 0, 0), [(0, 10, 0), (0, 0, 20)]) == (0, 0, 20)

    def test_vectorized_matches_scalar(self, random_frame, warm_palette):
        rgb = random_frame[:, :, :3]
        idx = nearest_indices(rgb, warm_palette)
        for y in range(0, 20, 3):
            for x in range(0, 24, 5):
                expected = nearest(rgb[y, x].astype(float), warm_palette.tolist())
                assert tuple(warm_palette[idx[y, x]]) == expected


class TestPaletteOrdering:
    def test_sort_by_luminance(self):
        palette = [(255, 0, 0), (0, 0, 0), (0, 0, 255)]
        assert sort_by_luminance(palette) == [(0, 0, 0), (0, 0, 255), (255, 0, 0)]

    def test_sort_is_stable(self):
        # Both have luminance 0
        assert sort_by_luminance([(1, 0, 0), (0, 0, 0)]) == [(1, 0, 0), (0, 0, 0)]

    def test_index_for_luminance(self):
        assert index_for_luminance(0, 4) == 0
        assert index_for_luminance(255, 4) == 3
        assert index_for_luminance(127, 2) == 0
        assert index_for_luminance(127.5, 2) == 1

    def test_index_for_luminance_clamps(self):
        assert index_for_luminance(-50, 3) == 0
        assert index_for_luminance(400, 3) == 2

    def test_index_array_matches_scalar(self):
        values = np.array([-10.0, 0.0, 63.75, 127.5, 200.0, 300.0])
        expected = [index_for_luminance(v, 5) for v in values]
        np.testing.assert_array_equal(index_for_luminance_array(values, 5), expected)


class TestClamp:
    def test_clamp8(self):
        assert clamp8(-3) == 0
        assert clamp8(300) == 255
        assert clamp8(12.5) == 12
        assert clamp8(12.6) == 13
        assert isinstance(clamp8(12.6), int)
        assert isinstance(clamp8(300.0), int)

    def test_to_uint8_rounds_half_to_even(self):
        out = to_uint8(np.array([127.5, 128.5, -4.0, 260.0, 63.75]))
        np.testing.assert_array_equal(out, [128, 128, 0, 255, 64])
        assert out.dtype == np.uint8


class TestHex:
    def test_parse(self):
        assert hex_to_rgb("#ff8000") == (255, 128, 0)
        assert hex_to_rgb("FF8000") == (255, 128, 0)

    def test_strict_parser_raises(self):
        with pytest.raises(ColorParseError):
            parse_hex("#12345")
        with pytest.raises(ColorParseError):
            parse_hex(None)

    def test_malformed_becomes_black(self, caplog):
        with caplog.at_level(logging.WARNING, logger="palette.color"):
            assert hex_to_rgb("not-a-color") == (0, 0, 0)
        assert "using black" in caplog.text

    def test_rgb_to_hex(self):
        assert rgb_to_hex(255, 128, 0) == "#ff8000"
        assert rgb_to_hex(300, -5, 127.5) == "#ff0080"


class TestAsPalette:
    def test_mixed_entries(self):
        pal = as_palette(["#000000", (255, 255, 255), [10, 20, 30]])
        assert pal.shape == (3, 3)
        assert pal.dtype == np.uint8
        np.testing.assert_array_equal(pal[2], [10, 20, 30])

    def test_single_color_rejected(self):
        with pytest.raises(InvalidPaletteError):
            as_palette(["#ffffff"])

    def test_invalid_palette_is_value_error(self):
        with pytest.raises(ValueError):
            as_palette([])


class TestValidateFrame:
    def test_accepts_rgba_uint8(self, random_frame):
        validate_frame(random_frame)

    @pytest.mark.parametrize(
        "frame",
        [
            np.zeros((4, 4, 3), dtype=np.uint8),
            np.zeros((4, 4, 4), dtype=np.float32),
            np.zeros((0, 4, 4), dtype=np.uint8),
            [[0, 0, 0, 0]],
        ],
    )
    def test_rejects(self, frame):
        with pytest.raises(ValueError):
            validate_frame(frame)
