"""Blob overlay — organic soft-edged shapes composited with a blend mode.

Blobs are drawn onto a transparent layer at normal blending, then the whole
layer is composited onto the frame with the selected blend mode and a global
opacity.

Random draw order (fixed so one seed reproduces one overlay), per blob in
generation order:
  1. center x, center y      uniform over the frame
  2. radius                  uniform in [min_size, max_size]
  3. base alpha              uniform in [0.2, 0.7]
  4. control point count     integer in [6, 9]
  5. per control point:      angle jitter, then radial jitter
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from effects.blend_modes import composite

logger = logging.getLogger(__name__)

MIN_BLOBS = 5
MAX_BLOBS = 100

ALPHA_MIN = 0.2
ALPHA_RANGE = 0.5

MIN_POINTS = 6
EXTRA_POINTS = 4  # point count drawn from [MIN_POINTS, MIN_POINTS + EXTRA_POINTS)

ANGLE_JITTER = 0.3  # radians, +/-
RADIAL_MIN = 0.6
RADIAL_RANGE = 0.8

# Samples per quadratic segment when flattening the outline
CURVE_SAMPLES = 12

DEFAULT_COLOR = (255, 255, 255)


@dataclass
class Blob:
    """One organic blob: center, radius, base alpha and outline control points."""

    cx: float
    cy: float
    radius: float
    alpha: float
    points: np.ndarray  # (k, 2) control points, x then y


def generate_blobs(
    rng: np.random.Generator,
    width: int,
    height: int,
    density: int,
    min_size: float,
    max_size: float,
) -> list[Blob]:
    """Draw blob geometry from rng in the documented order."""
    count = max(MIN_BLOBS, min(MAX_BLOBS, int(density)))
    lo, hi = float(min_size), float(max_size)
    if hi < lo:
        lo, hi = hi, lo

    blobs = []
    for _ in range(count):
        cx = rng.random() * width
        cy = rng.random() * height
        radius = lo + rng.random() * (hi - lo)
        alpha = ALPHA_MIN + rng.random() * ALPHA_RANGE

        n_points = MIN_POINTS + int(rng.integers(0, EXTRA_POINTS))
        step = 2.0 * np.pi / n_points
        points = np.empty((n_points, 2), dtype=np.float64)
        for j in range(n_points):
            angle = j * step + (rng.random() * 2.0 - 1.0) * ANGLE_JITTER
            r = radius * (RADIAL_MIN + rng.random() * RADIAL_RANGE)
            points[j, 0] = cx + np.cos(angle) * r
            points[j, 1] = cy + np.sin(angle) * r

        blobs.append(Blob(cx, cy, radius, alpha, points))
    return blobs


def outline(points: np.ndarray, samples: int = CURVE_SAMPLES) -> np.ndarray:
    """Closed smooth outline through the midpoints of successive control points.

    Each control point is the control handle of a quadratic Bezier running
    from the previous midpoint to the next one, which rounds every corner.
    """
    prev_pts = np.roll(points, 1, axis=0)
    next_pts = np.roll(points, -1, axis=0)
    starts = (prev_pts + points) / 2.0
    ends = (points + next_pts) / 2.0

    t = np.linspace(0.0, 1.0, samples, endpoint=False)[:, np.newaxis]
    segments = [
        (1 - t) ** 2 * p0 + 2 * (1 - t) * t * c + t**2 * p1
        for p0, c, p1 in zip(starts, points, ends)
    ]
    return np.concatenate(segments, axis=0)


def radial_falloff(dist: np.ndarray, radius: float, alpha: float, softness: float) -> np.ndarray:
    """Three-stop radial gradient: alpha at 0, alpha/2 at softness, 0 at radius."""
    t = dist / radius if radius > 0 else np.full_like(dist, np.inf)
    half = alpha * 0.5
    s = min(1.0, max(0.0, float(softness)))

    if s > 0:
        inner = alpha + (half - alpha) * (t / s)
    else:
        inner = np.full_like(t, half)
    if s < 1:
        outer = half * (1.0 - (t - s) / (1.0 - s))
    else:
        outer = np.zeros_like(t)

    out = np.where(t <= s, inner, outer)
    return np.where(t < 1.0, np.clip(out, 0.0, 1.0), 0.0)


def render_layer_alpha(
    blobs: list[Blob], width: int, height: int, softness: float
) -> np.ndarray:
    """Rasterize blobs source-over onto a transparent (H, W) alpha layer."""
    layer = np.zeros((height, width), dtype=np.float64)

    for blob in blobs:
        pts = outline(blob.points)
        x0 = max(0, int(np.floor(pts[:, 0].min())))
        y0 = max(0, int(np.floor(pts[:, 1].min())))
        x1 = min(width, int(np.ceil(pts[:, 0].max())) + 1)
        y1 = min(height, int(np.ceil(pts[:, 1].max())) + 1)
        if x0 >= x1 or y0 >= y1:
            continue

        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        poly = np.round(pts - [x0, y0]).astype(np.int32)
        cv2.fillPoly(mask, [poly], 1)

        # Gradient sampled at pixel centers
        ys = np.arange(y0, y1, dtype=np.float64)[:, np.newaxis] + 0.5
        xs = np.arange(x0, x1, dtype=np.float64)[np.newaxis, :] + 0.5
        dist = np.hypot(xs - blob.cx, ys - blob.cy)
        a = radial_falloff(dist, blob.radius, blob.alpha, softness) * mask

        region = layer[y0:y1, x0:x1]
        layer[y0:y1, x0:x1] = a + region * (1.0 - a)

    return layer


def apply_blobs(
    frame: np.ndarray,
    rng: np.random.Generator,
    *,
    intensity: float = 0.3,
    density: int = 50,
    min_size: float = 50,
    max_size: float = 200,
    softness: float = 0.6,
    blend_mode: str = "overlay",
    color: tuple[int, int, int] | None = None,
) -> np.ndarray:
    """Generate blobs and composite them onto a copy of frame.

    Args:
        frame:      RGBA frame (H, W, 4) uint8.
        rng:        Random source; consumed in the documented order.
        intensity:  Global layer opacity, 0-1.
        density:    Blob count, clamped to [5, 100].
        min_size:   Minimum radius in pixels.
        max_size:   Maximum radius in pixels.
        softness:   Position of the half-alpha gradient stop, 0-1.
        blend_mode: Blend mode name used for the final composite.
        color:      Blob RGB color (white when None).
    """
    h, w = frame.shape[:2]
    blobs = generate_blobs(rng, w, h, density, min_size, max_size)
    alpha = render_layer_alpha(blobs, w, h, softness)
    logger.debug(
        "Rendered %d blobs (coverage %.3f, mode %s)", len(blobs), alpha.mean(), blend_mode
    )

    rgb = np.array(color if color is not None else DEFAULT_COLOR, dtype=np.float64)
    return composite(frame, rgb, alpha, blend_mode, opacity=max(0.0, min(1.0, intensity)))
