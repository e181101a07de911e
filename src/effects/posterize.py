"""Posterize effect — reduce tonal levels for flat color bands.

Three modes:
  luminance    snap luminance to the level grid and rescale RGB (keeps hue)
  per-channel  snap R, G, B independently
  artistic     contrast boost around the image mean, then per-channel snap
               with a slight warm cast on green

With a palette, a final pass maps every pixel by luminance onto the
luminance-sorted palette, overriding the mode's RGB.
"""

import logging

import numpy as np

from palette.color import (
    index_for_luminance_array,
    luminance_array,
    round_half_up,
    sorted_palette_array,
    to_uint8,
)

logger = logging.getLogger(__name__)

MODES = ("luminance", "per-channel", "artistic")

MIN_LEVELS = 2
MAX_LEVELS = 16

# Tuned constants carried over unchanged; not derived from a model
ARTISTIC_CONTRAST = 1.3
ARTISTIC_GREEN_GAIN = 1.05
ARTISTIC_MEAN_DIVISOR = 0.75  # per RGBA sample, i.e. mean over the 3 color channels


def _posterize_luminance(rgb: np.ndarray, step: float) -> np.ndarray:
    lum = luminance_array(rgb).astype(np.float64)
    quant = round_half_up(lum / step) * step
    with np.errstate(divide="ignore", invalid="ignore"):
        scale = np.where(lum > 0, quant / lum, 1.0)
    return np.clip(rgb.astype(np.float64) * scale[:, :, np.newaxis], 0, 255)


def _posterize_per_channel(rgb: np.ndarray, step: float) -> np.ndarray:
    return round_half_up(rgb.astype(np.float64) / step) * step


def _posterize_artistic(rgb: np.ndarray, step: float) -> np.ndarray:
    c = rgb.astype(np.float64)
    total_samples = rgb.shape[0] * rgb.shape[1] * 4
    mean = c.sum() / (total_samples * ARTISTIC_MEAN_DIVISOR)

    boosted = (c - mean) * ARTISTIC_CONTRAST + mean
    out = round_half_up(boosted / step) * step
    out[:, :, 1] *= ARTISTIC_GREEN_GAIN
    return np.clip(out, 0, 255)


def map_to_palette(frame: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Replace each pixel by the sorted-palette entry its luminance selects."""
    sorted_pal = sorted_palette_array(palette)
    lum = luminance_array(frame[:, :, :3])
    idx = index_for_luminance_array(lum.astype(np.float64), len(sorted_pal))
    output = frame.copy()
    output[:, :, :3] = sorted_pal[idx]
    return output


def posterize(
    frame: np.ndarray,
    levels: int = 4,
    mode: str = "luminance",
    palette: np.ndarray | None = None,
) -> np.ndarray:
    """Reduce tonal levels. Alpha preserved.

    Args:
        frame:   RGBA frame (H, W, 4) uint8.
        levels:  Number of levels per axis, clamped to [2, 16].
        mode:    One of MODES. Unknown modes leave RGB unchanged before the
                 palette pass.
        palette: Optional (N, 3) palette for the final luminance mapping.

    Returns:
        New RGBA frame.
    """
    levels = max(MIN_LEVELS, min(MAX_LEVELS, int(levels)))
    step = 255.0 / (levels - 1)
    has_palette = palette is not None and len(palette) > 0

    output = frame.copy()
    rgb = frame[:, :, :3]

    # Luminance mode is skipped under a palette: the palette pass keys on
    # luminance alone and replaces the RGB anyway.
    if mode == "luminance" and not has_palette:
        output[:, :, :3] = to_uint8(_posterize_luminance(rgb, step))
    elif mode == "per-channel":
        output[:, :, :3] = to_uint8(_posterize_per_channel(rgb, step))
    elif mode == "artistic":
        output[:, :, :3] = to_uint8(_posterize_artistic(rgb, step))
    elif mode not in MODES:
        logger.debug("Unknown posterize mode %r, skipping level pass", mode)

    if has_palette:
        output = map_to_palette(output, palette)

    return output
