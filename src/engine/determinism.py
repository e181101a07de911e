"""Seeded determinism for reproducible overlays and grain."""

import hashlib

import numpy as np


def derive_seed(seed: int, stage: str) -> int:
    """Derive a per-stage seed. Same inputs = same output, always."""
    key = f"{seed}:{stage}"
    return int(hashlib.sha256(key.encode()).hexdigest()[:16], 16)


def make_rng(seed: int) -> np.random.Generator:
    """Create a seeded RNG from a derived seed."""
    return np.random.default_rng(seed)
