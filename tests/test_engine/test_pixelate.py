"""Tests for pixelation down/up scaling."""

import numpy as np
import pytest

from engine.pixelate import downscale, upscale_nearest, working_size


@pytest.mark.parametrize(
    "size,scale,expected",
    [((10, 7), 2.0, (5, 3)), ((10, 7), 1.0, (10, 7)), ((3, 3), 8.0, (1, 1)), ((100, 50), 3.5, (28, 14))],
)
def test_working_size(size, scale, expected):
    assert working_size(*size, scale) == expected


def test_downscale_averages_blocks():
    frame = np.zeros((4, 4, 4), dtype=np.uint8)
    frame[:, 2:, :3] = 200
    frame[:, :, 3] = 255
    small = downscale(frame, 2.0)
    assert small.shape == (2, 2, 4)
    np.testing.assert_array_equal(small[:, :, 0], [[0, 200], [0, 200]])


def test_downscale_mixes_inside_block():
    frame = np.zeros((2, 2, 4), dtype=np.uint8)
    frame[0, 0, :3] = 200
    small = downscale(frame, 2.0)
    assert small.shape == (1, 1, 4)
    assert small[0, 0, 0] == 50


def test_scale_one_is_copy():
    rng = np.random.default_rng(1)
    frame = rng.integers(0, 256, (5, 6, 4), dtype=np.uint8)
    out = downscale(frame, 1.0)
    np.testing.assert_array_equal(out, frame)
    assert out is not frame


def test_upscale_replicates_blocks():
    small = np.arange(16, dtype=np.uint8).reshape(2, 2, 4)
    big = upscale_nearest(small, 4, 4)
    assert big.shape == (4, 4, 4)
    np.testing.assert_array_equal(big[0:2, 0:2], np.broadcast_to(small[0, 0], (2, 2, 4)))
    np.testing.assert_array_equal(big[2:4, 2:4], np.broadcast_to(small[1, 1], (2, 2, 4)))


def test_upscale_uneven_size():
    small = np.zeros((1, 2, 4), dtype=np.uint8)
    small[0, 1] = 255
    big = upscale_nearest(small, 5, 3)
    assert big.shape == (3, 5, 4)
    np.testing.assert_array_equal(big[:, :, 0], [[0, 0, 0, 255, 255]] * 3)
