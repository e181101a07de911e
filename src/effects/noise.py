"""Noise effect — luminance grain, one draw per pixel shared by R, G and B."""

import numpy as np

from palette.color import to_uint8


def add_noise(frame: np.ndarray, amount: float, rng: np.random.Generator) -> np.ndarray:
    """Add uniform grain in [-amount, +amount) to every pixel. Alpha preserved.

    Draws one (H, W) block of uniforms from rng in row-major order.
    """
    amount = max(0.0, float(amount))
    if amount == 0.0:
        return frame.copy()

    h, w = frame.shape[:2]
    noise = (rng.random((h, w)) - 0.5) * amount * 2.0

    output = frame.copy()
    rgb = frame[:, :, :3].astype(np.float64) + noise[:, :, np.newaxis]
    output[:, :, :3] = to_uint8(rgb)
    return output
