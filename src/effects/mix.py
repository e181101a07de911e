"""Linear dry/wet mix between two frames of equal shape."""

import numpy as np

from palette.color import to_uint8


def blend_frames(a: np.ndarray, b: np.ndarray, weight: float) -> np.ndarray:
    """Per-channel a * (1 - weight) + b * weight. Alpha taken from a.

    Raises:
        ValueError: If the frames differ in shape.
    """
    if a.shape != b.shape:
        raise ValueError(f"Cannot blend shape {a.shape} with {b.shape}")
    weight = max(0.0, min(1.0, float(weight)))

    output = a.copy()
    if weight == 0.0:
        return output
    mixed = (
        a[:, :, :3].astype(np.float64) * (1.0 - weight)
        + b[:, :, :3].astype(np.float64) * weight
    )
    output[:, :, :3] = to_uint8(mixed)
    return output
