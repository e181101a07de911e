"""Settings calibration — verifies every numeric setting produces visible change.

Run:  cd src && python -m engine._calibration
"""

import numpy as np

from engine.pipeline import ImageProcessor
from engine.settings import SETTINGS_SCHEMA, ProcessingSettings

VALID_CURVES = {"linear", "logarithmic", "exponential", "s-curve"}

# Settings a sweep cannot judge by pixel difference
SKIP_SWEEP = {"seed"}

# Features switched on for the sweep so every numeric setting is live
SWEEP_BASE = {
    "posterize_enabled": True,
    "posterize_use_palette": False,
    "noise_enabled": True,
    "dither_strength": 50.0,
    "overlay_size_min": 10,
    "overlay_size_max": 40,
}


def _test_frame(w: int = 96, h: int = 72) -> np.ndarray:
    """Create a deterministic test frame (RGBA uint8)."""
    rng = np.random.default_rng(42)
    frame = rng.integers(0, 256, (h, w, 4), dtype=np.uint8)
    frame[:, :, 3] = 255
    return frame


def _mean_diff(a: np.ndarray, b: np.ndarray) -> float:
    """Mean absolute pixel difference across RGB channels."""
    return float(
        np.mean(np.abs(a[:, :, :3].astype(np.float32) - b[:, :, :3].astype(np.float32)))
    )


def numeric_settings() -> list[str]:
    return [
        name
        for name, spec in SETTINGS_SCHEMA.items()
        if spec["type"] in ("float", "int") and name not in SKIP_SWEEP
    ]


def calibrate_all(frame: np.ndarray | None = None) -> list[dict]:
    """Sweep every numeric setting through the full pipeline.

    Returns a list of result dicts:
      {setting, level_pct, value, mean_pixel_diff, curve, unit}
    """
    processor = ImageProcessor()
    processor.load_source(frame if frame is not None else _test_frame())

    base = ProcessingSettings().replace(**SWEEP_BASE)
    reference = processor.run(base)
    results: list[dict] = []

    for name in numeric_settings():
        spec = SETTINGS_SCHEMA[name]
        pmin, pmax = spec["min"], spec["max"]

        for level_pct in [0, 25, 50, 75, 100]:
            value = pmin + (pmax - pmin) * level_pct / 100.0
            if spec["type"] == "int":
                value = int(round(value))

            out = processor.run(base.replace(**{name: value}))
            results.append(
                {
                    "setting": name,
                    "level_pct": level_pct,
                    "value": value,
                    "mean_pixel_diff": round(_mean_diff(reference, out), 2),
                    "curve": spec.get("curve", "linear"),
                    "unit": spec.get("unit", ""),
                }
            )

    return results


def validate_schema() -> list[str]:
    """Check curve names, units and defaults of every numeric setting."""
    errors: list[str] = []
    for name, spec in SETTINGS_SCHEMA.items():
        if spec["type"] == "choice" and spec["default"] not in spec["options"]:
            errors.append(f"{name}: default {spec['default']!r} not in options")
        if spec["type"] not in ("float", "int"):
            continue
        curve = spec.get("curve")
        if curve is not None and curve not in VALID_CURVES:
            errors.append(f"{name}: invalid curve '{curve}' (valid: {VALID_CURVES})")
        if "unit" not in spec:
            errors.append(f"{name}: missing 'unit'")
        if not spec["min"] <= spec["default"] <= spec["max"]:
            errors.append(f"{name}: default {spec['default']} outside [min, max]")
    return errors


if __name__ == "__main__":
    for problem in validate_schema():
        print(f"SCHEMA  {problem}")
    for row in calibrate_all():
        print(
            f"{row['setting']:<22} {row['level_pct']:>3}%  "
            f"value={row['value']:<10} diff={row['mean_pixel_diff']}"
        )
