import numpy as np
import pytest

from engine.pipeline import flush_timing


def make_solid_frame(r: int, g: int, b: int, a: int = 255, h: int = 8, w: int = 8) -> np.ndarray:
    """Create a solid color RGBA frame."""
    return np.full((h, w, 4), [r, g, b, a], dtype=np.uint8)


@pytest.fixture
def random_frame():
    """Deterministic 20x24 RGBA frame with varied alpha."""
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, (20, 24, 4), dtype=np.uint8)


@pytest.fixture
def bw_palette():
    return np.array([[0, 0, 0], [255, 255, 255]], dtype=np.uint8)


@pytest.fixture
def warm_palette():
    return np.array([[26, 15, 10], [139, 69, 19], [218, 165, 32], [255, 239, 213]], dtype=np.uint8)


@pytest.fixture(autouse=True)
def _reset_stage_timing():
    flush_timing()
    yield
    flush_timing()
