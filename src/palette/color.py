"""Color math shared by the dithering and effects engines.

Scalar helpers mirror the per-pixel formulas exactly; the *_array variants
apply the same integer/float arithmetic over whole frames with numpy.
"""

import logging
import re
from typing import Iterable, Sequence

import numpy as np

from errors import ColorParseError, InvalidPaletteError

logger = logging.getLogger(__name__)

MIN_PALETTE_COLORS = 2

# Perceptual weights for nearest-color search (R, G, B)
DISTANCE_WEIGHTS = np.array([0.30, 0.59, 0.11], dtype=np.float64)

# Rows per chunk when computing nearest indices (bounds H*W*N temporaries)
NEAREST_CHUNK_ROWS = 256

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)

RGB = tuple[int, int, int]


def luminance(r: int, g: int, b: int) -> int:
    """Integer perceptual luminance. Truncating shift, not rounding."""
    return (int(r) * 77 + int(g) * 150 + int(b) * 29) >> 8


def luminance_array(rgb: np.ndarray) -> np.ndarray:
    """luminance() over an (..., 3) array. Returns int32."""
    c = rgb.astype(np.int32)
    return (c[..., 0] * 77 + c[..., 1] * 150 + c[..., 2] * 29) >> 8


def distance_squared(c1: Sequence[float], c2: Sequence[float]) -> float:
    """Weighted squared distance. No sqrt; only used for comparisons."""
    dr = c1[0] - c2[0]
    dg = c1[1] - c2[1]
    db = c1[2] - c2[2]
    return dr * dr * 0.3 + dg * dg * 0.59 + db * db * 0.11


def nearest(color: Sequence[float], palette: Sequence[Sequence[int]]) -> RGB:
    """Closest palette entry by linear scan. First entry wins ties."""
    best = palette[0]
    best_dist = float("inf")
    for entry in palette:
        dist = distance_squared(color, entry)
        if dist < best_dist:
            best_dist = dist
            best = entry
    return tuple(int(v) for v in best)


def nearest_index(color: np.ndarray, palette: np.ndarray) -> int:
    """Index of nearest palette row for a single (3,) color."""
    diff = palette - color
    dist = diff[:, 0] * diff[:, 0] * 0.3 + diff[:, 1] * diff[:, 1] * 0.59
    dist = dist + diff[:, 2] * diff[:, 2] * 0.11
    # argmin returns the first minimum, which keeps the tie rule
    return int(np.argmin(dist))


def nearest_indices(rgb: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Nearest palette index for every pixel of an (H, W, 3) array."""
    pal = palette.astype(np.float64)
    h = rgb.shape[0]
    out = np.empty(rgb.shape[:2], dtype=np.intp)
    for start in range(0, h, NEAREST_CHUNK_ROWS):
        stop = min(h, start + NEAREST_CHUNK_ROWS)
        chunk = rgb[start:stop, :, np.newaxis, :].astype(np.float64)
        diff = chunk - pal  # (rows, W, N, 3)
        sq = diff * diff
        dist = sq[..., 0] * 0.3 + sq[..., 1] * 0.59
        dist = dist + sq[..., 2] * 0.11
        out[start:stop] = np.argmin(dist, axis=-1)
    return out


def sort_by_luminance(palette: Sequence[Sequence[int]]) -> list[RGB]:
    """Stable ascending sort by luminance (darkest first)."""
    entries = [tuple(int(v) for v in c) for c in palette]
    return sorted(entries, key=lambda c: luminance(*c))


def index_for_luminance(lum: float, n: int) -> int:
    """Map luminance 0-255 to a palette index in [0, n-1]."""
    index = int(np.floor(lum / 255 * (n - 1) + 0.5))
    return max(0, min(n - 1, index))


def index_for_luminance_array(lum: np.ndarray, n: int) -> np.ndarray:
    index = np.floor(lum / 255.0 * (n - 1) + 0.5).astype(np.intp)
    return np.clip(index, 0, n - 1)


def clamp8(x: float) -> int:
    """Clamp to [0, 255] and round like a byte store (half to even)."""
    return int(np.clip(np.rint(x), 0, 255))


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Store float channel values as bytes (round half to even, clamped)."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def round_half_up(values):
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


# --- Hex parsing ---


def parse_hex(text: str) -> RGB:
    """Strict #rrggbb parser. Raises ColorParseError."""
    match = _HEX_RE.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise ColorParseError(f"invalid color: {text!r}")
    return tuple(int(part, 16) for part in match.groups())


def hex_to_rgb(text: str) -> RGB:
    """Parse a hex color, substituting black for malformed input."""
    try:
        return parse_hex(text)
    except ColorParseError as e:
        logger.warning("%s, using black", e)
        return (0, 0, 0)


def rgb_to_hex(r: float, g: float, b: float) -> str:
    parts = (int(np.clip(round_half_up(v), 0, 255)) for v in (r, g, b))
    return "#" + "".join(f"{v:02x}" for v in parts)


# --- Palette construction ---


def as_palette(colors: Iterable) -> np.ndarray:
    """Build an (N, 3) uint8 palette from hex strings or RGB triples.

    Raises:
        InvalidPaletteError: fewer than MIN_PALETTE_COLORS entries.
    """
    if colors is None:
        raise InvalidPaletteError("palette is required")
    entries = []
    for c in colors:
        if isinstance(c, str):
            entries.append(hex_to_rgb(c))
        else:
            r, g, b = (int(clamp8(int(v))) for v in tuple(c)[:3])
            entries.append((r, g, b))
    if len(entries) < MIN_PALETTE_COLORS:
        raise InvalidPaletteError(
            f"palette needs at least {MIN_PALETTE_COLORS} colors, got {len(entries)}"
        )
    return np.array(entries, dtype=np.uint8).reshape(-1, 3)


def sorted_palette_array(palette: np.ndarray) -> np.ndarray:
    """Luminance-sorted copy of an (N, 3) palette array."""
    return np.array(sort_by_luminance(palette), dtype=np.uint8).reshape(-1, 3)


def validate_frame(frame: np.ndarray) -> None:
    """Raise ValueError unless frame is a non-empty (H, W, 4) uint8 array."""
    if not isinstance(frame, np.ndarray):
        raise ValueError(f"frame must be ndarray, got {type(frame).__name__}")
    if frame.ndim != 3 or frame.shape[2] != 4:
        raise ValueError(f"frame must be (H, W, 4), got {frame.shape}")
    if frame.dtype != np.uint8:
        raise ValueError(f"frame must be uint8, got {frame.dtype}")
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise ValueError(f"frame has zero dimension: {frame.shape}")
