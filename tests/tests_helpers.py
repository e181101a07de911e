"""Assertion helpers shared across test modules."""

import numpy as np


def palette_members(frame: np.ndarray, palette: np.ndarray) -> bool:
    """True when every RGB triple of frame is exactly a palette entry."""
    rgb = frame[:, :, :3].reshape(-1, 1, 3)
    return bool(np.all(np.any(np.all(rgb == palette[np.newaxis], axis=-1), axis=-1)))
