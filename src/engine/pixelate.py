"""Pixelation — area-averaged downscale, hard-edged nearest-neighbor upscale."""

import math

import cv2
import numpy as np


def working_size(width: int, height: int, scale: float) -> tuple[int, int]:
    """(floor(W / scale), floor(H / scale)), never below 1x1."""
    scale = max(1.0, float(scale))
    return max(1, math.floor(width / scale)), max(1, math.floor(height / scale))


def downscale(frame: np.ndarray, scale: float) -> np.ndarray:
    """Shrink frame by scale using box (area) averaging. No-op at scale <= 1."""
    h, w = frame.shape[:2]
    new_w, new_h = working_size(w, h, scale)
    if (new_w, new_h) == (w, h):
        return frame.copy()
    return cv2.resize(frame, (new_w, new_h), interpolation=cv2.INTER_AREA)


def upscale_nearest(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Replicate source pixels into blocks covering (height, width).

    Output pixel (x, y) takes source pixel (x * w // width, y * h // height),
    so every source pixel becomes a solid block with hard edges.
    """
    h, w = frame.shape[:2]
    if (w, h) == (width, height):
        return frame.copy()
    ys = np.arange(height) * h // height
    xs = np.arange(width) * w // width
    return frame[ys[:, np.newaxis], xs[np.newaxis, :]]
