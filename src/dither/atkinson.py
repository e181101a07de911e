"""Atkinson dithering — classic Mac style.

Each of six neighbors receives 1/8 of the error; the remaining 2/8 is
discarded, which gives higher local contrast than Floyd-Steinberg.
"""

import numpy as np

from dither.diffusion import Kernel, diffuse

DITHER_ID = "atkinson"
DITHER_NAME = "Atkinson"

PARAMS: dict = {}

ERROR_FRACTION = 1 / 8

KERNEL: Kernel = (
    (1, 0, 1.0),
    (2, 0, 1.0),
    (-1, 1, 1.0),
    (0, 1, 1.0),
    (1, 1, 1.0),
    (0, 2, 1.0),
)


def apply(frame: np.ndarray, palette: np.ndarray, params: dict | None = None) -> np.ndarray:
    return diffuse(frame, palette, KERNEL, error_scale=ERROR_FRACTION)
