"""Ordered (Bayer) dithering — threshold matrix tiled over the frame.

No error propagation: each pixel depends only on its own value and its
position, so the whole pass is a single vectorized operation.
"""

import numpy as np

from palette.color import (
    index_for_luminance_array,
    luminance_array,
    sorted_palette_array,
)

DITHER_ID = "ordered"
DITHER_NAME = "Ordered (Bayer)"

DEFAULT_MATRIX_SIZE = 4

PARAMS: dict = {
    "matrix_size": {
        "type": "choice",
        "options": [2, 4, 8],
        "default": DEFAULT_MATRIX_SIZE,
        "label": "Matrix Size",
        "description": "Bayer threshold tile size",
    }
}

# Normalized to [0, 1)
BAYER_MATRICES: dict[int, np.ndarray] = {
    2: np.array(
        [
            [0.00, 0.50],
            [0.75, 0.25],
        ]
    ),
    4: np.array(
        [
            [0.0000, 0.5000, 0.1250, 0.6250],
            [0.7500, 0.2500, 0.8750, 0.3750],
            [0.1875, 0.6875, 0.0625, 0.5625],
            [0.9375, 0.4375, 0.8125, 0.3125],
        ]
    ),
    8: np.array(
        [
            [0.000, 0.500, 0.125, 0.625, 0.031, 0.531, 0.156, 0.656],
            [0.750, 0.250, 0.875, 0.375, 0.781, 0.281, 0.906, 0.406],
            [0.188, 0.688, 0.063, 0.563, 0.219, 0.719, 0.094, 0.594],
            [0.938, 0.438, 0.813, 0.313, 0.969, 0.469, 0.844, 0.344],
            [0.047, 0.547, 0.172, 0.672, 0.016, 0.516, 0.141, 0.641],
            [0.797, 0.297, 0.922, 0.422, 0.766, 0.266, 0.891, 0.391],
            [0.234, 0.734, 0.109, 0.609, 0.203, 0.703, 0.078, 0.578],
            [0.984, 0.484, 0.859, 0.359, 0.953, 0.453, 0.828, 0.328],
        ]
    ),
}

# Threshold perturbation amplitude applied around the matrix midpoint
THRESHOLD_SPREAD = 0.5


def threshold_map(width: int, height: int, matrix_size: int) -> np.ndarray:
    """Tile the Bayer matrix over (height, width) via (x mod n, y mod n)."""
    bayer = BAYER_MATRICES.get(matrix_size, BAYER_MATRICES[DEFAULT_MATRIX_SIZE])
    n = bayer.shape[0]
    ys = np.arange(height) % n
    xs = np.arange(width) % n
    return bayer[ys[:, np.newaxis], xs[np.newaxis, :]]


def apply(frame: np.ndarray, palette: np.ndarray, params: dict | None = None) -> np.ndarray:
    """Map perturbed luminance onto the luminance-sorted palette."""
    params = params or {}
    matrix_size = int(params.get("matrix_size", DEFAULT_MATRIX_SIZE))
    if matrix_size not in BAYER_MATRICES:
        matrix_size = DEFAULT_MATRIX_SIZE

    h, w = frame.shape[:2]
    sorted_pal = sorted_palette_array(palette)

    lum = luminance_array(frame[:, :, :3]) / 255.0
    adjusted = lum + (threshold_map(w, h, matrix_size) - 0.5) * THRESHOLD_SPREAD
    idx = index_for_luminance_array(adjusted * 255.0, len(sorted_pal))

    output = frame.copy()
    output[:, :, :3] = sorted_pal[idx]
    return output
