"""
font2png package initialization.

Renders every selected character of a font file to its own PNG, normalized to
a square RGBA canvas:

  codepoints.py : candidate code point selection (category filter / explicit range)
  font.py       : fontTools-backed font capability (glyph lookup, outlines, bounds)
  rasterize.py  : per-glyph scale, coverage rasterization, square canvas compositing
  naming.py     : deterministic output identifiers and paths
  batch.py      : fan-out over a multiprocessing pool, per-glyph failure collection
  config.py     : YAML + CLI configuration dataclasses
  cli.py        : command line entry point

Design Notes:
  - Scale: floor(img_size / max_dim) where max_dim is measured at unit scale
    (line height == 1px). Flooring keeps the glyph inside the pixel budget.
  - Canvas: side = max(bbox height, bbox width); glyph centered with floor division.
  - Alpha carries coverage; RGB is the flat foreground color.
  - Glyph id 0 (.notdef) never reaches the rasterizer.

External Dependencies:
  - numpy
  - pillow (PNG encoding)
  - fonttools (font decoding / outlines)
  - pyyaml (config files)
  - pycairo (optional alternative rasterizer)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

__version__ = "0.3.0"

logger = logging.getLogger("font2png")
if not logger.handlers:
    _h = logging.StreamHandler()
    _h.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(_h)
logger.setLevel(logging.INFO)


# --------------------------------------------------------------------------------------
# Dataclasses / Type Models
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box in y-down pixel space.

    Exact boxes (from outline bounds) carry floats; pixel boxes carry ints
    obtained by flooring the minimum corner and ceiling the maximum corner.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return abs(self.max_y - self.min_y)

    def to_pixel(self) -> "BoundingBox":
        return BoundingBox(
            int(math.floor(self.min_x)),
            int(math.floor(self.min_y)),
            int(math.ceil(self.max_x)),
            int(math.ceil(self.max_y)),
        )


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


WHITE = Color(255, 255, 255)


@dataclass(frozen=True)
class OutputRecord:
    code_point: int
    path: Path


@dataclass(frozen=True)
class GlyphFailure:
    code_point: int
    error: str


# --------------------------------------------------------------------------------------
# Public API Exports
# --------------------------------------------------------------------------------------

from .errors import *  # noqa: E402,F401,F403
from .codepoints import CodePointSelector, parse_unicode_range  # noqa: E402
from .font import GlyphFont, GlyphHandle, load_font  # noqa: E402
from .naming import (  # noqa: E402
    decode_hex_identifier,
    file_stem,
    font_base_name,
    hex_identifier,
    output_path,
)
from .rasterize import (  # noqa: E402
    RasterizedGlyph,
    composite_canvas,
    compute_scale,
    rasterize_glyph,
    save_canvas,
)
from .batch import BatchResult, BatchRunner, BatchState, render_code_point  # noqa: E402

__all__ = [
    # Dataclasses
    "BoundingBox",
    "Color",
    "WHITE",
    "OutputRecord",
    "GlyphFailure",
    # Selection
    "CodePointSelector",
    "parse_unicode_range",
    # Font
    "GlyphFont",
    "GlyphHandle",
    "load_font",
    # Naming
    "hex_identifier",
    "decode_hex_identifier",
    "file_stem",
    "font_base_name",
    "output_path",
    # Rasterization
    "RasterizedGlyph",
    "compute_scale",
    "rasterize_glyph",
    "composite_canvas",
    "save_canvas",
    # Batch
    "BatchRunner",
    "BatchResult",
    "BatchState",
    "render_code_point",
]
