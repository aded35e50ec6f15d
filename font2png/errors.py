"""
Exception hierarchy for font2png.

Fatal (whole run):  ConfigError and subclasses, FontDecodeError, PathError,
                    OSError while reading the font or creating directories.
Per-glyph:          GlyphError and subclasses, OSError while saving a PNG.
Internal:           CanvasBoundsError (centering arithmetic defect).
"""

from __future__ import annotations


class Font2PngError(Exception):
    """Base class for all font2png errors."""


class ConfigError(Font2PngError):
    pass


class ColorParseError(ConfigError):
    def __init__(self, text: str):
        super().__init__(
            f"Error parsing color, expected a hex color string like #RRGGBB got: {text!r}"
        )
        self.text = text


class UnicodeRangeParseError(ConfigError):
    pass


class FontDecodeError(Font2PngError):
    pass


class PathError(Font2PngError):
    pass


class GlyphError(Font2PngError):
    """Failure confined to a single code point; the batch carries on."""

    def __init__(self, code_point: int, message: str):
        super().__init__(f"U+{code_point:04X}: {message}")
        self.code_point = code_point


class GlyphGeometryError(GlyphError):
    pass


class InvalidScale(GlyphError):
    pass


class NoBoundingBox(GlyphError):
    pass


class CanvasBoundsError(Font2PngError):
    pass


__all__ = [
    "Font2PngError",
    "ConfigError",
    "ColorParseError",
    "UnicodeRangeParseError",
    "FontDecodeError",
    "PathError",
    "GlyphError",
    "GlyphGeometryError",
    "InvalidScale",
    "NoBoundingBox",
    "CanvasBoundsError",
]
