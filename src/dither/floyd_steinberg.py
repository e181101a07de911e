"""Floyd-Steinberg dithering — classic error diffusion (7/16, 3/16, 5/16, 1/16)."""

import numpy as np

from dither.diffusion import Kernel, diffuse

DITHER_ID = "floyd-steinberg"
DITHER_NAME = "Floyd-Steinberg"

PARAMS: dict = {}

KERNEL: Kernel = (
    (1, 0, 7 / 16),  # right
    (-1, 1, 3 / 16),  # bottom-left
    (0, 1, 5 / 16),  # bottom
    (1, 1, 1 / 16),  # bottom-right
)


def apply(frame: np.ndarray, palette: np.ndarray, params: dict | None = None) -> np.ndarray:
    """Diffuse the full quantization error to the four unvisited neighbors."""
    return diffuse(frame, palette, KERNEL)
