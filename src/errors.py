"""Error taxonomy for the stylization core.

NoImageLoaded and InvalidPaletteError are fatal to the call that raised them.
ColorParseError never leaves palette.color (malformed text becomes black).
"""


class DithertoneError(Exception):
    """Base class for all core errors."""


class NoImageLoaded(DithertoneError):
    """Pipeline invoked before a source raster was loaded."""

    def __init__(self, message: str = "No image loaded"):
        super().__init__(message)


class InvalidPaletteError(DithertoneError, ValueError):
    """Palette has fewer than the minimum number of colors."""


class ColorParseError(DithertoneError, ValueError):
    """Color text could not be parsed as #rrggbb."""
