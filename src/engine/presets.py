"""Designer-curated presets — static palette + effect combinations."""

from engine.settings import ProcessingSettings

PRESETS: dict[str, dict] = {
    "noir": {
        "name": "Noir",
        "palette": ("#0a0a0a", "#f5f5f5"),
        "dither_kind": "floyd-steinberg",
        "overlay_enabled": True,
        "overlay_intensity": 20,
    },
    "terminal": {
        "name": "Terminal Green",
        "palette": ("#0d1117", "#00ff41", "#004d14"),
        "dither_kind": "ordered",
        "overlay_enabled": True,
        "overlay_intensity": 15,
    },
    "blueprint": {
        "name": "Blueprint",
        "palette": ("#001830", "#0066cc", "#e6f2ff"),
        "dither_kind": "atkinson",
        "overlay_enabled": True,
        "overlay_intensity": 25,
    },
    "sunset": {
        "name": "Sunset",
        "palette": ("#1a0a1e", "#ff6b35", "#ffd93d"),
        "dither_kind": "floyd-steinberg",
        "overlay_enabled": True,
        "overlay_intensity": 30,
    },
    "ocean": {
        "name": "Ocean Depth",
        "palette": ("#0c1445", "#1e90ff", "#7fdbff"),
        "dither_kind": "ordered",
        "overlay_enabled": True,
        "overlay_intensity": 35,
    },
    "forest": {
        "name": "Forest",
        "palette": ("#0a1f0a", "#2d5a27", "#90c67c"),
        "dither_kind": "atkinson",
        "overlay_enabled": True,
        "overlay_intensity": 25,
    },
    "retro": {
        "name": "Retro Mac",
        "palette": ("#000000", "#ffffff"),
        "dither_kind": "atkinson",
        "overlay_enabled": False,
        "overlay_intensity": 0,
    },
    "vaporwave": {
        "name": "Vaporwave",
        "palette": ("#1a0a2e", "#ff71ce", "#01cdfe"),
        "dither_kind": "floyd-steinberg",
        "overlay_enabled": True,
        "overlay_intensity": 40,
    },
    "poster-warm": {
        "name": "Poster Warm",
        "palette": ("#1a0f0a", "#8b4513", "#daa520", "#ffefd5"),
        "dither_kind": "none",
        "posterize_enabled": True,
        "posterize_levels": 4,
        "overlay_enabled": False,
        "overlay_intensity": 0,
    },
    "poster-cool": {
        "name": "Poster Cool",
        "palette": ("#0a0a1a", "#1e3a5f", "#4a90d9", "#c5ddf8"),
        "dither_kind": "none",
        "posterize_enabled": True,
        "posterize_levels": 4,
        "overlay_enabled": True,
        "overlay_intensity": 15,
    },
    "pop-art": {
        "name": "Pop Art",
        "palette": ("#000000", "#ff0066", "#ffcc00", "#00ccff"),
        "dither_kind": "ordered",
        "posterize_enabled": True,
        "posterize_levels": 3,
        "overlay_enabled": True,
        "overlay_intensity": 25,
    },
    "cyberpunk": {
        "name": "Cyberpunk",
        "palette": ("#0f0f23", "#ff00ff", "#00ffff", "#ffff00"),
        "dither_kind": "ordered",
        "posterize_enabled": False,
        "overlay_enabled": True,
        "overlay_intensity": 35,
    },
}


def list_presets() -> list[tuple[str, str]]:
    """(key, display name) for every preset, in definition order."""
    return [(key, preset["name"]) for key, preset in PRESETS.items()]


def apply_preset(name: str, base: ProcessingSettings | None = None) -> ProcessingSettings:
    """Overlay a preset's fields onto base (defaults when None).

    Fields the preset does not mention keep their value from base.

    Raises:
        KeyError: Unknown preset name.
    """
    preset = PRESETS[name]
    base = base or ProcessingSettings()
    changes = {k: v for k, v in preset.items() if k != "name"}
    return base.replace(**changes).clamped()
