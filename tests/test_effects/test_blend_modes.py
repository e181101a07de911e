"""Tests for blend modes — boundary values, known values, compositing."""

import numpy as np
import pytest

from conftest import make_solid_frame
from effects.blend_modes import (
    BLEND_MODE_NAMES,
    BlendMode,
    blend,
    blend_pixel,
    composite,
    resolve_mode,
)

# mode -> (f(0, 0), f(255, 255), f(0, 255)) as (base, overlay)
BOUNDARY = {
    "normal": (0, 255, 255),
    "multiply": (0, 255, 0),
    "screen": (0, 255, 255),
    "overlay": (0, 255, 0),
    "soft-light": (0, 255, 0),
    "hard-light": (0, 255, 255),
    "color-dodge": (0, 255, 255),
    "color-burn": (0, 255, 0),
    "difference": (0, 0, 255),
    "exclusion": (0, 0, 255),
    "lighten": (0, 255, 255),
    "darken": (0, 255, 0),
}


def test_twelve_modes():
    assert len(BLEND_MODE_NAMES) == 12
    assert set(BOUNDARY) == set(BLEND_MODE_NAMES)


@pytest.mark.parametrize("mode", sorted(BOUNDARY))
def test_boundary_values(mode):
    zero_zero, full_full, zero_full = BOUNDARY[mode]
    assert blend_pixel(0, 0, mode) == zero_zero
    assert blend_pixel(255, 255, mode) == full_full
    assert blend_pixel(0, 255, mode) == zero_full


class TestKnownValues:
    def test_multiply_black_overlay(self):
        assert blend_pixel(0, 255, "multiply") == 0

    def test_screen_white_base(self):
        assert blend_pixel(255, 0, "screen") == 255

    def test_difference(self):
        assert blend_pixel(10, 200, "difference") == 190

    def test_multiply_midtones(self):
        # 128/255 * 128/255 * 255 = 64.25
        assert blend_pixel(128, 128, "multiply") == 64

    def test_overlay_branches_on_base(self):
        # dark base: 2 * b * l ; light base: screen-like
        assert blend_pixel(64, 128, "overlay") == 64
        assert blend_pixel(192, 128, "overlay") == 192

    def test_color_dodge_full_overlay_guard(self):
        assert blend_pixel(128, 255, "color-dodge") == 255

    def test_color_burn_zero_overlay_guard(self):
        assert blend_pixel(128, 0, "color-burn") == 0

    def test_lighten_darken(self):
        assert blend_pixel(200, 50, "lighten") == 200
        assert blend_pixel(200, 50, "darken") == 50


def test_normal_returns_overlay():
    assert blend_pixel(17, 99, "normal") == 99


def test_unknown_mode_is_normal():
    assert resolve_mode("vivid-light") is BlendMode.NORMAL
    assert blend_pixel(17, 99, "vivid-light") == 99


def test_enum_and_name_agree():
    assert blend_pixel(100, 150, BlendMode.SCREEN) == blend_pixel(100, 150, "screen")


def test_vectorized_no_division_warnings():
    base = np.arange(256, dtype=np.float64)
    with np.errstate(all="raise"):
        out_dodge = blend(base, np.full(256, 255.0), "color-dodge")
        out_burn = blend(base, np.zeros(256), "color-burn")
    assert np.all(out_dodge == 255)
    assert np.all(out_burn == 0)


class TestComposite:
    def test_zero_alpha_keeps_base(self):
        base = make_solid_frame(40, 80, 120)
        alpha = np.zeros(base.shape[:2])
        out = composite(base, np.array([255.0, 255.0, 255.0]), alpha, "normal")
        np.testing.assert_array_equal(out, base)

    def test_full_alpha_normal_replaces(self):
        base = make_solid_frame(40, 80, 120)
        alpha = np.ones(base.shape[:2])
        out = composite(base, np.array([200.0, 10.0, 0.0]), alpha, "normal")
        np.testing.assert_array_equal(out[0, 0, :3], [200, 10, 0])

    def test_opacity_scales_alpha(self):
        base = make_solid_frame(0, 0, 0)
        alpha = np.ones(base.shape[:2])
        out = composite(base, np.array([255.0, 255.0, 255.0]), alpha, "normal", opacity=0.5)
        # 127.5 stored half-to-even
        assert out[0, 0, 0] == 128

    def test_base_alpha_kept(self):
        base = make_solid_frame(40, 80, 120, a=77)
        alpha = np.ones(base.shape[:2])
        out = composite(base, np.array([0.0, 0.0, 0.0]), alpha, "multiply")
        assert np.all(out[:, :, 3] == 77)
        assert np.all(out[:, :, :3] == 0)
