"""Dither registry — central lookup for all quantization strategies."""

from typing import Callable

import numpy as np

DitherFn = Callable[[np.ndarray, np.ndarray, dict], np.ndarray]

_REGISTRY: dict[str, dict] = {}


def register(dither_id: str, fn: DitherFn, params: dict, name: str):
    """Register a dithering strategy."""
    _REGISTRY[dither_id] = {
        "fn": fn,
        "params": params,
        "name": name,
    }


def get(dither_id: str) -> dict | None:
    """Get strategy info by ID."""
    return _REGISTRY.get(dither_id)


def list_all() -> list[dict]:
    """List all registered strategies with metadata."""
    return [
        {"id": did, "name": info["name"], "params": info["params"]}
        for did, info in _REGISTRY.items()
    ]


def _auto_register():
    """Import and register the built-in strategies."""
    from dither import atkinson, floyd_steinberg, ordered, quantize

    for mod in [quantize, floyd_steinberg, ordered, atkinson]:
        register(mod.DITHER_ID, mod.apply, mod.PARAMS, mod.DITHER_NAME)


_auto_register()
