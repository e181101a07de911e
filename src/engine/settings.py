"""Processing settings — immutable configuration for one pipeline run.

SETTINGS_SCHEMA describes every field (range, default, unit, curve) in the
same shape the dither PARAMS tables use. ProcessingSettings.clamped() pulls
every value back into its documented domain so a run never fails on an
out-of-range number; only an undersized palette is fatal.
"""

import dataclasses
import logging
import math
import re
from dataclasses import dataclass

from dither.ordered import BAYER_MATRICES
from effects.blend_modes import BLEND_MODE_NAMES
from effects.posterize import MODES as POSTERIZE_MODES
from palette.color import hex_to_rgb

logger = logging.getLogger(__name__)

DITHER_KINDS = ("none", "floyd-steinberg", "ordered", "atkinson")

DEFAULT_PALETTE = ((10, 10, 10), (245, 245, 245))

SETTINGS_SCHEMA: dict[str, dict] = {
    "palette": {
        "type": "color",
        "default": DEFAULT_PALETTE,
        "label": "Colors",
        "description": "Ordered output palette, 2 to 5 colors",
    },
    "dither_kind": {
        "type": "choice",
        "options": list(DITHER_KINDS),
        "default": "floyd-steinberg",
        "label": "Dither",
        "description": "Quantization strategy",
    },
    "dither_strength": {
        "type": "float",
        "min": 0.0,
        "max": 100.0,
        "default": 100.0,
        "label": "Dither Strength",
        "curve": "linear",
        "unit": "%",
        "description": "Blend between the undithered and the dithered frame",
    },
    "ordered_matrix_size": {
        "type": "choice",
        "options": sorted(BAYER_MATRICES),
        "default": 4,
        "label": "Matrix Size",
        "description": "Bayer tile size for ordered dithering",
    },
    "pixel_scale": {
        "type": "float",
        "min": 1.0,
        "max": 32.0,
        "default": 1.0,
        "label": "Pixel Scale",
        "curve": "linear",
        "unit": "x",
        "description": "Downscale factor applied before processing",
    },
    "posterize_enabled": {
        "type": "bool",
        "default": False,
        "label": "Posterize",
    },
    "posterize_levels": {
        "type": "int",
        "min": 2,
        "max": 16,
        "default": 4,
        "label": "Levels",
        "curve": "linear",
        "unit": "",
        "description": "Tonal levels per axis",
    },
    "posterize_mode": {
        "type": "choice",
        "options": list(POSTERIZE_MODES),
        "default": "luminance",
        "label": "Posterize Mode",
    },
    "posterize_use_palette": {
        "type": "bool",
        "default": True,
        "label": "Map To Palette",
    },
    "overlay_enabled": {
        "type": "bool",
        "default": True,
        "label": "Blobs",
    },
    "overlay_intensity": {
        "type": "float",
        "min": 0.0,
        "max": 100.0,
        "default": 30.0,
        "label": "Blob Intensity",
        "curve": "linear",
        "unit": "%",
        "description": "Global opacity of the blob layer",
    },
    "overlay_density": {
        "type": "int",
        "min": 5,
        "max": 100,
        "default": 15,
        "label": "Blob Count",
        "curve": "linear",
        "unit": "count",
        "description": "Number of blobs",
    },
    "overlay_size_min": {
        "type": "int",
        "min": 1,
        "max": 1000,
        "default": 50,
        "label": "Min Size",
        "curve": "linear",
        "unit": "px",
        "description": "Smallest blob radius",
    },
    "overlay_size_max": {
        "type": "int",
        "min": 1,
        "max": 1000,
        "default": 200,
        "label": "Max Size",
        "curve": "linear",
        "unit": "px",
        "description": "Largest blob radius",
    },
    "overlay_softness": {
        "type": "float",
        "min": 0.0,
        "max": 100.0,
        "default": 60.0,
        "label": "Softness",
        "curve": "linear",
        "unit": "%",
        "description": "Radius fraction where the blob reaches half alpha",
    },
    "overlay_blend_mode": {
        "type": "choice",
        "options": list(BLEND_MODE_NAMES),
        "default": "overlay",
        "label": "Blend Mode",
    },
    "overlay_color": {
        "type": "color",
        "default": None,
        "label": "Blob Color",
        "description": "Blob color, white when unset",
    },
    "noise_enabled": {
        "type": "bool",
        "default": False,
        "label": "Noise",
    },
    "noise_amount": {
        "type": "float",
        "min": 0.0,
        "max": 255.0,
        "default": 10.0,
        "label": "Noise Amount",
        "curve": "linear",
        "unit": "",
        "description": "Maximum grain offset per pixel",
    },
    "original_blend": {
        "type": "float",
        "min": 0.0,
        "max": 100.0,
        "default": 0.0,
        "label": "Original Blend",
        "curve": "linear",
        "unit": "%",
        "description": "Final mix back toward the source image",
    },
    "seed": {
        "type": "int",
        "min": 0,
        "max": 2**32 - 1,
        "default": 0,
        "label": "Seed",
        "curve": "linear",
        "unit": "",
        "description": "Seed for blob geometry and grain",
    },
}

# Collaborator (UI state) names that differ from ours after camel->snake
KEY_ALIASES = {
    "colors": "palette",
    "dither_type": "dither_kind",
    "blob_enabled": "overlay_enabled",
    "blob_intensity": "overlay_intensity",
    "blob_density": "overlay_density",
    "blob_size_min": "overlay_size_min",
    "blob_size_max": "overlay_size_max",
    "blob_softness": "overlay_softness",
    "blob_blend_mode": "overlay_blend_mode",
    "blob_color": "overlay_color",
}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Collaborator payloads may carry flags as text
_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _normalize_key(key: str) -> str:
    snake = _CAMEL_RE.sub("_", key).lower()
    return KEY_ALIASES.get(snake, snake)


def _to_rgb(value) -> tuple[int, int, int]:
    if isinstance(value, str):
        return hex_to_rgb(value)
    r, g, b = (max(0, min(255, int(v))) for v in tuple(value)[:3])
    return (r, g, b)


def _clamp_field(name: str, value):
    """Clamp one field into its schema domain."""
    spec = SETTINGS_SCHEMA[name]
    ptype = spec["type"]
    default = spec["default"]

    if ptype == "bool":
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
            logger.debug("Setting %s=%r is not a boolean, using %r", name, value, default)
            return default
        return bool(value)

    if ptype == "choice":
        options = spec["options"]
        if value in options:
            return value
        # Numeric options may arrive as text ("4")
        try:
            if isinstance(options[0], int) and int(value) in options:
                return int(value)
        except (TypeError, ValueError):
            pass
        logger.debug("Setting %s=%r not in %s, using %r", name, value, options, default)
        return default

    if ptype == "color":
        if value is None:
            return None
        if name == "palette":
            return tuple(_to_rgb(c) for c in value)
        return _to_rgb(value)

    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Setting %s=%r is not numeric, using %r", name, value, default)
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    number = max(spec["min"], min(spec["max"], number))
    if ptype == "int":
        return int(round(number))
    return number


@dataclass(frozen=True)
class ProcessingSettings:
    """Immutable settings for one ImageProcessor.run() call."""

    palette: tuple = DEFAULT_PALETTE
    dither_kind: str = "floyd-steinberg"
    dither_strength: float = 100.0
    ordered_matrix_size: int = 4
    pixel_scale: float = 1.0
    posterize_enabled: bool = False
    posterize_levels: int = 4
    posterize_mode: str = "luminance"
    posterize_use_palette: bool = True
    overlay_enabled: bool = True
    overlay_intensity: float = 30.0
    overlay_density: int = 15
    overlay_size_min: int = 50
    overlay_size_max: int = 200
    overlay_softness: float = 60.0
    overlay_blend_mode: str = "overlay"
    overlay_color: tuple | None = None
    noise_enabled: bool = False
    noise_amount: float = 10.0
    original_blend: float = 0.0
    seed: int = 0

    def clamped(self) -> "ProcessingSettings":
        """Return a copy with every field inside its schema domain."""
        values = {
            f.name: _clamp_field(f.name, getattr(self, f.name))
            for f in dataclasses.fields(self)
        }
        if values["overlay_size_max"] < values["overlay_size_min"]:
            values["overlay_size_max"] = values["overlay_size_min"]
        return ProcessingSettings(**values)

    def replace(self, **changes) -> "ProcessingSettings":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingSettings":
        """Build settings from snake_case or camelCase keys.

        Unknown keys are ignored. The result is not clamped; run() clamps.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        values = {}
        for key, value in data.items():
            name = _normalize_key(key)
            if name not in known:
                logger.debug("Ignoring unknown setting %r", key)
                continue
            if name == "palette" and value is not None:
                value = tuple(value)
            values[name] = value
        return cls(**values)
