"""Error diffusion core shared by Floyd-Steinberg and Atkinson.

Pixels are visited in strict raster-scan order (row-major, left to right,
top to bottom). Each pixel reads the error already pushed onto it by earlier
pixels, so rows must never be processed in parallel. The scan itself is
compiled with numba; the Python wrapper only unpacks the kernel.
"""

import numba as nb
import numpy as np

# (dx, dy, weight) offsets relative to the current pixel
Kernel = tuple[tuple[int, int, float], ...]


@nb.njit(cache=True)
def _nearest_index(r: float, g: float, b: float, palette: np.ndarray) -> int:
    """Weighted nearest palette row. Strict < keeps the first entry on ties."""
    best = 0
    best_dist = np.inf
    for i in range(palette.shape[0]):
        dr = palette[i, 0] - r
        dg = palette[i, 1] - g
        db = palette[i, 2] - b
        dist = dr * dr * 0.3 + dg * dg * 0.59
        dist = dist + db * db * 0.11
        if dist < best_dist:
            best_dist = dist
            best = i
    return best


@nb.njit(cache=True)
def _diffuse_scan(
    buffer: np.ndarray,
    palette: np.ndarray,
    dxs: np.ndarray,
    dys: np.ndarray,
    weights: np.ndarray,
    error_scale: float,
) -> np.ndarray:
    """Raster scan over a float32 (H, W, 3) buffer. Returns palette indices."""
    h, w = buffer.shape[0], buffer.shape[1]
    indices = np.empty((h, w), dtype=np.int64)

    for y in range(h):
        for x in range(w):
            # Error arithmetic in float64, stored back into float32
            r = np.float64(buffer[y, x, 0])
            g = np.float64(buffer[y, x, 1])
            b = np.float64(buffer[y, x, 2])
            idx = _nearest_index(r, g, b, palette)
            indices[y, x] = idx

            er = (r - palette[idx, 0]) * error_scale
            eg = (g - palette[idx, 1]) * error_scale
            eb = (b - palette[idx, 2]) * error_scale
            for k in range(dxs.shape[0]):
                nx = x + dxs[k]
                ny = y + dys[k]
                if 0 <= nx < w and ny < h:
                    buffer[ny, nx, 0] = np.float32(buffer[ny, nx, 0] + er * weights[k])
                    buffer[ny, nx, 1] = np.float32(buffer[ny, nx, 1] + eg * weights[k])
                    buffer[ny, nx, 2] = np.float32(buffer[ny, nx, 2] + eb * weights[k])

    return indices


def diffuse(
    frame: np.ndarray,
    palette: np.ndarray,
    kernel: Kernel,
    error_scale: float = 1.0,
) -> np.ndarray:
    """Quantize frame to palette, spreading quantization error over kernel.

    Args:
        frame:       Input RGBA frame (H, W, 4) uint8.
        palette:     (N, 3) uint8 palette, N >= 2.
        kernel:      Neighbor offsets and weights. Out-of-bounds neighbors are
                     skipped and their share of the error is dropped.
        error_scale: Multiplier applied to the error before the kernel weights.

    Returns:
        New RGBA frame; every RGB triple is a palette entry, alpha unchanged.
    """
    palette = np.asarray(palette, dtype=np.uint8)
    dxs = np.array([k[0] for k in kernel], dtype=np.int64)
    dys = np.array([k[1] for k in kernel], dtype=np.int64)
    weights = np.array([k[2] for k in kernel], dtype=np.float64)

    buffer = np.ascontiguousarray(frame[:, :, :3], dtype=np.float32)
    indices = _diffuse_scan(
        buffer, palette.astype(np.float64), dxs, dys, weights, float(error_scale)
    )

    output = frame.copy()
    output[:, :, :3] = palette[indices]
    return output
