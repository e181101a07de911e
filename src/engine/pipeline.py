"""Stylization pipeline — sequences every stage over a stored source frame.

Stage order for one run:

    pixelate-down → posterize → dither → strength-blend → pixelate-up
        → overlay → noise → original-blend

Stages are strictly sequential and each one returns a new frame, so the
stored source is never mutated and can be re-run with other settings.

Includes rolling per-stage timing stats and Sentry context for stage
failures. Failures are re-raised to the caller unchanged.
"""

import logging
import time
from collections import defaultdict, deque

import numpy as np
import sentry_sdk

from dither import registry
from effects.blobs import apply_blobs
from effects.mix import blend_frames
from effects.noise import add_noise
from effects.posterize import posterize
from engine.determinism import derive_seed, make_rng
from engine.pixelate import downscale, upscale_nearest
from engine.settings import ProcessingSettings
from errors import NoImageLoaded
from palette.color import as_palette, validate_frame

logger = logging.getLogger(__name__)

STAGES = (
    "pixelate-down",
    "posterize",
    "dither",
    "strength-blend",
    "pixelate-up",
    "overlay",
    "noise",
    "original-blend",
)

# Stage timing threshold (milliseconds)
STAGE_WARN_MS = 250

# Kind used when the requested one is not registered
FALLBACK_DITHER = "floyd-steinberg"

# Rolling timing stats per stage
_stage_timing: dict[str, deque] = defaultdict(lambda: deque(maxlen=100))


def record_timing(stage: str, elapsed_ms: float):
    """Record a timing sample for a stage."""
    _stage_timing[stage].append(elapsed_ms)


def get_stage_stats() -> dict[str, dict]:
    """Return p50/p95/max per stage."""
    result = {}
    for stage, samples in _stage_timing.items():
        s = sorted(samples)
        result[stage] = {
            "p50": s[len(s) // 2] if s else 0,
            "p95": s[int(len(s) * 0.95)] if len(s) >= 20 else None,
            "max": max(s) if s else 0,
            "samples": len(s),
        }
    return result


def flush_timing():
    """Clear all timing stats."""
    _stage_timing.clear()


def _capture_with_context(e: Exception, stage: str, extra: dict):
    """Capture exception to Sentry with stage-level context and fingerprint dedup."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("stage", stage)
        scope.fingerprint = ["stage-crash", stage, type(e).__name__]
        scope.set_context("stage", extra)
        sentry_sdk.capture_exception(e, scope=scope)


def _run_stage(stage: str, fn, frame: np.ndarray, *args, **kwargs) -> np.ndarray:
    """Run one stage with timing; report and re-raise failures."""
    t0 = time.monotonic()
    try:
        output = fn(frame, *args, **kwargs)
    except Exception as e:
        _capture_with_context(e, stage, {"frame_shape": list(frame.shape)})
        logger.error("Stage %s failed: %s", stage, type(e).__name__)
        logger.debug("Stage %s exception detail: %s", stage, e)
        raise

    elapsed_ms = (time.monotonic() - t0) * 1000
    record_timing(stage, elapsed_ms)
    if elapsed_ms > STAGE_WARN_MS:
        logger.warning(
            "Stage %s took %.0fms (>%dms warn threshold) on %dx%d frame",
            stage,
            elapsed_ms,
            STAGE_WARN_MS,
            frame.shape[1],
            frame.shape[0],
        )
    else:
        logger.debug("Stage %s took %.1fms", stage, elapsed_ms)
    return output


def _dither(frame: np.ndarray, palette: np.ndarray, settings: ProcessingSettings) -> np.ndarray:
    info = registry.get(settings.dither_kind)
    if info is None:
        logger.warning(
            "Unknown dither kind %r, using %s", settings.dither_kind, FALLBACK_DITHER
        )
        info = registry.get(FALLBACK_DITHER)
    return info["fn"](frame, palette, {"matrix_size": settings.ordered_matrix_size})


class ImageProcessor:
    """Owns the source frame and runs the pipeline over it.

    Not thread-safe: one run at a time per instance.
    """

    def __init__(self):
        self._source: np.ndarray | None = None

    def load_source(self, frame: np.ndarray):
        """Store a private copy of frame as the new source.

        Raises:
            ValueError: If frame is not a non-empty (H, W, 4) uint8 array.
        """
        validate_frame(frame)
        self._source = frame.copy()
        logger.info("Loaded source %dx%d", frame.shape[1], frame.shape[0])

    def has_image(self) -> bool:
        return self._source is not None

    def dimensions(self) -> tuple[int, int] | None:
        """(width, height) of the stored source, or None."""
        if self._source is None:
            return None
        return self._source.shape[1], self._source.shape[0]

    def clear(self):
        self._source = None

    def run(
        self,
        settings: ProcessingSettings | None = None,
        rng: np.random.Generator | None = None,
    ) -> np.ndarray:
        """Run every enabled stage over the stored source.

        Args:
            settings: Settings for this run; clamped on entry. Defaults when None.
            rng:      Optional random source shared by overlay then noise.
                      When None, each stage gets its own generator derived
                      from settings.seed.

        Returns:
            New RGBA frame with the source dimensions.

        Raises:
            NoImageLoaded:       No source frame stored.
            InvalidPaletteError: Palette has fewer than 2 colors.
        """
        if self._source is None:
            raise NoImageLoaded()

        settings = (settings or ProcessingSettings()).clamped()
        palette = as_palette(settings.palette)

        source = self._source
        height, width = source.shape[:2]

        sentry_sdk.add_breadcrumb(
            category="pipeline",
            message=f"run {settings.dither_kind}",
            data={"resolution": [width, height], "pixel_scale": settings.pixel_scale},
            level="info",
        )
        t0 = time.monotonic()

        overlay_rng = rng if rng is not None else make_rng(derive_seed(settings.seed, "overlay"))
        noise_rng = rng if rng is not None else make_rng(derive_seed(settings.seed, "noise"))

        if settings.pixel_scale > 1:
            frame = _run_stage("pixelate-down", downscale, source, settings.pixel_scale)
        else:
            frame = source.copy()

        if settings.posterize_enabled:
            frame = _run_stage(
                "posterize",
                posterize,
                frame,
                settings.posterize_levels,
                settings.posterize_mode,
                palette if settings.posterize_use_palette else None,
            )

        # Undithered reference for the strength blend
        clean = frame

        if settings.dither_strength > 0:
            already_mapped = settings.posterize_enabled and settings.posterize_use_palette
            if settings.dither_kind == "none" and already_mapped:
                logger.debug("Skipping quantize: posterize already mapped to palette")
            else:
                frame = _run_stage("dither", _dither, frame, palette, settings)

            if settings.dither_strength < 100 and settings.dither_kind != "none":
                frame = _run_stage(
                    "strength-blend",
                    blend_frames,
                    frame,
                    clean,
                    (100 - settings.dither_strength) / 100,
                )

        if frame.shape[:2] != (height, width):
            frame = _run_stage("pixelate-up", upscale_nearest, frame, width, height)

        if settings.overlay_enabled and settings.overlay_intensity > 0:
            frame = _run_stage(
                "overlay",
                apply_blobs,
                frame,
                overlay_rng,
                intensity=settings.overlay_intensity / 100,
                density=settings.overlay_density,
                min_size=settings.overlay_size_min,
                max_size=settings.overlay_size_max,
                softness=settings.overlay_softness / 100,
                blend_mode=settings.overlay_blend_mode,
                color=settings.overlay_color,
            )

        if settings.noise_enabled:
            frame = _run_stage("noise", add_noise, frame, settings.noise_amount, noise_rng)

        if settings.original_blend > 0:
            frame = _run_stage(
                "original-blend",
                blend_frames,
                frame,
                source,
                settings.original_blend / 100,
            )

        logger.debug("Pipeline run took %.1fms", (time.monotonic() - t0) * 1000)
        return frame
