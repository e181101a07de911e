"""Photoshop-style blend modes and alpha compositing.

Formulas work in normalized [0, 1] space and are rescaled to [0, 255] with
round-half-up. All math is float64 to avoid uint8 overflow/wrap.
"""

from enum import Enum

import numpy as np

from palette.color import round_half_up, to_uint8


class BlendMode(Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    SOFT_LIGHT = "soft-light"
    HARD_LIGHT = "hard-light"
    COLOR_DODGE = "color-dodge"
    COLOR_BURN = "color-burn"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
    LIGHTEN = "lighten"
    DARKEN = "darken"


BLEND_MODE_NAMES: tuple[str, ...] = tuple(m.value for m in BlendMode)


def _normal(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    # Opaque overlay replaces the base
    return l


def _multiply(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return b * l


def _screen(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return 1.0 - (1.0 - b) * (1.0 - l)


def _overlay(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    # Conditional on the base: multiply in the shadows, screen in the highlights
    return np.where(b < 0.5, 2.0 * b * l, 1.0 - 2.0 * (1.0 - b) * (1.0 - l))


def _soft_light(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return np.where(
        l < 0.5,
        b - (1.0 - 2.0 * l) * b * (1.0 - b),
        b + (2.0 * l - 1.0) * (np.sqrt(b) - b),
    )


def _hard_light(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    # Overlay with the roles swapped: conditional on the blend layer
    return np.where(l < 0.5, 2.0 * b * l, 1.0 - 2.0 * (1.0 - b) * (1.0 - l))


def _color_dodge(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(l == 1.0, 1.0, np.minimum(1.0, b / (1.0 - l)))


def _color_burn(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(l == 0.0, 0.0, np.maximum(0.0, 1.0 - (1.0 - b) / l))


def _difference(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return np.abs(b - l)


def _exclusion(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return b + l - 2.0 * b * l


def _lighten(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return np.maximum(b, l)


def _darken(b: np.ndarray, l: np.ndarray) -> np.ndarray:
    return np.minimum(b, l)


BLEND_FUNCTIONS = {
    BlendMode.NORMAL: _normal,
    BlendMode.MULTIPLY: _multiply,
    BlendMode.SCREEN: _screen,
    BlendMode.OVERLAY: _overlay,
    BlendMode.SOFT_LIGHT: _soft_light,
    BlendMode.HARD_LIGHT: _hard_light,
    BlendMode.COLOR_DODGE: _color_dodge,
    BlendMode.COLOR_BURN: _color_burn,
    BlendMode.DIFFERENCE: _difference,
    BlendMode.EXCLUSION: _exclusion,
    BlendMode.LIGHTEN: _lighten,
    BlendMode.DARKEN: _darken,
}


def resolve_mode(mode: "BlendMode | str") -> BlendMode:
    """Accept a BlendMode or its name. Unknown names fall back to normal."""
    if isinstance(mode, BlendMode):
        return mode
    try:
        return BlendMode(mode)
    except ValueError:
        return BlendMode.NORMAL


def blend(base, overlay, mode: "BlendMode | str") -> np.ndarray:
    """Blend byte values elementwise. Returns float64 holding whole bytes."""
    fn = BLEND_FUNCTIONS[resolve_mode(mode)]
    b = np.asarray(base, dtype=np.float64) / 255.0
    l = np.asarray(overlay, dtype=np.float64) / 255.0
    result = np.broadcast_to(fn(b, l), np.broadcast(b, l).shape)
    return round_half_up(result * 255.0)


def blend_pixel(base: int, overlay: int, mode: "BlendMode | str") -> int:
    """Single-channel blend: (base, overlay) bytes -> byte."""
    return int(blend(base, overlay, mode))


def composite(
    base: np.ndarray,
    layer_rgb: np.ndarray,
    layer_alpha: np.ndarray,
    mode: "BlendMode | str",
    opacity: float = 1.0,
) -> np.ndarray:
    """Composite a translucent layer onto an opaque RGBA frame.

    Each channel becomes base * (1 - a) + blend(base, layer) * a, where a is
    the layer alpha scaled by opacity. The base alpha channel is kept.

    Args:
        base:        RGBA frame (H, W, 4) uint8.
        layer_rgb:   Layer color, (H, W, 3) or broadcastable (3,).
        layer_alpha: Layer coverage (H, W) in [0, 1].
        mode:        Blend mode applied where the layer covers the base.
        opacity:     Global layer opacity in [0, 1].
    """
    rgb = base[:, :, :3].astype(np.float64)
    blended = blend(rgb, np.broadcast_to(layer_rgb, rgb.shape), mode)
    a = (np.clip(layer_alpha, 0.0, 1.0) * float(opacity))[:, :, np.newaxis]

    output = base.copy()
    output[:, :, :3] = to_uint8(rgb * (1.0 - a) + blended * a)
    return output
