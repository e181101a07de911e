"""Plain quantization — nearest palette color, no dithering."""

import numpy as np

from palette.color import nearest_indices

DITHER_ID = "none"
DITHER_NAME = "None (Quantize)"

PARAMS: dict = {}


def apply(frame: np.ndarray, palette: np.ndarray, params: dict | None = None) -> np.ndarray:
    """Replace every pixel by its nearest palette color. Alpha preserved."""
    output = frame.copy()
    idx = nearest_indices(frame[:, :, :3], palette)
    output[:, :, :3] = palette[idx]
    return output
