"""
Per-glyph scaling, coverage rasterization and square canvas compositing.

Pipeline for one glyph:
  1. compute_scale     : floor(img_size / max_dim) from the unit-scale exact box
  2. rasterize_glyph   : pixel bounding box + float coverage in [0, 1]
  3. composite_canvas  : square RGBA canvas, glyph centered, alpha = coverage
  4. save_canvas       : PNG via Pillow

Engines:
  - scanline (default): non-zero winding fill on a supersampled grid with numpy,
    box-averaged down to per-pixel coverage.
  - cairo: pycairo A8 surface with FILL_RULE_WINDING (pip install pycairo).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

import numpy as np
from PIL import Image

from . import BoundingBox, Color
from .errors import (
    CanvasBoundsError,
    ConfigError,
    GlyphGeometryError,
    InvalidScale,
    NoBoundingBox,
)

try:
    import cairo

    CAIRO_AVAILABLE = True
except ImportError:
    CAIRO_AVAILABLE = False

ENGINES = ("scanline", "cairo")

Polyline = Sequence[Tuple[float, float]]


def check_engine(engine: str) -> None:
    if engine not in ENGINES:
        raise ConfigError(f"Unknown raster engine {engine!r}, expected one of {ENGINES}")
    if engine == "cairo" and not CAIRO_AVAILABLE:
        raise ConfigError(
            "Cairo engine requested but pycairo is not installed: pip install pycairo"
        )


# ---------------------------------------------------------------------------
# Scaling
# ---------------------------------------------------------------------------


def compute_scale(glyph, img_size: int) -> float:
    """
    Uniform scale that fits the glyph's larger dimension into `img_size` pixels.

    The quotient is floored so the scaled glyph never exceeds the budget; a
    result of zero is rejected rather than clamped.

    Raises:
        GlyphGeometryError: no unit-scale bounding box, or a zero / non-finite extent.
        InvalidScale: img_size too small for the glyph at unit scale.
    """
    bbox = glyph.bounding_box_at(1.0)
    if bbox is None:
        raise GlyphGeometryError(glyph.code_point, "no bounding box at unit scale")
    max_dim = max(abs(bbox.height), abs(bbox.width))
    if max_dim == 0 or not math.isfinite(max_dim):
        raise GlyphGeometryError(
            glyph.code_point, f"degenerate unit-scale extent {max_dim!r}"
        )
    scale = math.floor(img_size / max_dim)
    if scale <= 0:
        raise InvalidScale(
            glyph.code_point,
            f"scale floor({img_size} / {max_dim:g}) = {scale} is not positive",
        )
    return float(scale)


# ---------------------------------------------------------------------------
# Rasterization
# ---------------------------------------------------------------------------


@dataclass
class RasterizedGlyph:
    """
    bbox: integer pixel box of the positioned glyph (y-down, origin at baseline)
    coverage: (height, width) float32 in [0, 1], index [y, x] relative to bbox origin
    """

    code_point: int
    bbox: BoundingBox
    coverage: np.ndarray

    @property
    def width(self) -> int:
        return int(self.bbox.width)

    @property
    def height(self) -> int:
        return int(self.bbox.height)

    def iter_coverage(self) -> Iterator[Tuple[int, int, float]]:
        """Yield (x, y, coverage) for every pixel of the box."""
        h, w = self.coverage.shape
        for y in range(h):
            row = self.coverage[y]
            for x in range(w):
                yield x, y, float(row[x])


def _scanline_coverage(
    polylines: List[Polyline], width: int, height: int, ss: int
) -> np.ndarray:
    """Non-zero winding coverage, `ss` x `ss` samples per pixel."""
    W, H = width * ss, height * ss
    segs = []
    for poly in polylines:
        pts = np.asarray(poly, dtype=np.float64) * ss
        if len(pts) < 3:
            continue
        segs.append(np.concatenate([pts, np.roll(pts, -1, axis=0)], axis=1))
    if not segs:
        return np.zeros((height, width), dtype=np.float32)

    edges = np.concatenate(segs, axis=0)
    edges = edges[edges[:, 1] != edges[:, 3]]  # horizontal edges never cross a scanline
    x0, y0, x1, y1 = edges.T
    direction = np.where(y1 > y0, 1, -1).astype(np.int32)
    ylo = np.minimum(y0, y1)
    yhi = np.maximum(y0, y1)

    # Sample rows r with center r + 0.5 in [ylo, yhi)
    r_start = np.clip(np.ceil(ylo - 0.5), 0, H).astype(np.int64)
    r_end = np.clip(np.ceil(yhi - 0.5), 0, H).astype(np.int64)
    counts = np.maximum(r_end - r_start, 0)
    total = int(counts.sum())
    if total == 0:
        return np.zeros((height, width), dtype=np.float32)

    edge_idx = np.repeat(np.arange(len(counts)), counts)
    offsets = np.arange(total) - np.repeat(np.cumsum(counts) - counts, counts)
    rows = r_start[edge_idx] + offsets

    yc = rows + 0.5
    t = (yc - y0[edge_idx]) / (y1[edge_idx] - y0[edge_idx])
    xs = x0[edge_idx] + t * (x1[edge_idx] - x0[edge_idx])
    # First sample column whose center lies strictly right of the crossing
    cols = np.clip(np.floor(xs - 0.5).astype(np.int64) + 1, 0, W)

    diff = np.zeros((H, W + 1), dtype=np.int32)
    np.add.at(diff, (rows, cols), direction[edge_idx])
    inside = np.cumsum(diff[:, :W], axis=1) != 0

    return inside.reshape(height, ss, width, ss).mean(axis=(1, 3), dtype=np.float32)


def _cairo_coverage(polylines: List[Polyline], width: int, height: int) -> np.ndarray:
    surface = cairo.ImageSurface(cairo.FORMAT_A8, width, height)
    ctx = cairo.Context(surface)
    ctx.set_fill_rule(cairo.FILL_RULE_WINDING)

    for sp in polylines:
        if len(sp) < 2:
            continue
        ctx.move_to(sp[0][0], sp[0][1])
        for x, y in sp[1:]:
            ctx.line_to(x, y)
        ctx.close_path()

    ctx.set_source_rgba(1, 1, 1, 1)
    ctx.fill()
    surface.flush()

    # A8 rows are padded to the surface stride
    stride = surface.get_stride()
    buf = np.ndarray(shape=(height, stride), dtype=np.uint8, buffer=surface.get_data())
    return buf[:, :width].astype(np.float32) / 255.0


def rasterize_glyph(
    glyph,
    scale: float,
    *,
    engine: str = "scanline",
    supersample_factor: int = 4,
    curve_subdivisions: int = 8,
) -> RasterizedGlyph:
    """
    Rasterize a glyph positioned at device (0, 0) with a uniform scale.

    Raises:
        NoBoundingBox: the positioned glyph covers no pixel area.
    """
    exact = glyph.bounding_box_at(scale)
    if exact is None:
        raise NoBoundingBox(glyph.code_point, "glyph has no outline")
    bbox = exact.to_pixel()
    width, height = int(bbox.width), int(bbox.height)
    if width <= 0 or height <= 0:
        raise NoBoundingBox(
            glyph.code_point, f"empty pixel bounding box {width}x{height}"
        )

    polylines = [
        [(x - bbox.min_x, y - bbox.min_y) for x, y in sp]
        for sp in glyph.outline_at(scale, curve_subdivisions)
    ]

    check_engine(engine)
    if engine == "cairo":
        coverage = _cairo_coverage(polylines, width, height)
    else:
        coverage = _scanline_coverage(polylines, width, height, supersample_factor)

    return RasterizedGlyph(glyph.code_point, bbox, np.clip(coverage, 0.0, 1.0))


# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------


def composite_canvas(raster: RasterizedGlyph, color: Color) -> np.ndarray:
    """
    Center the glyph on a transparent square RGBA canvas.

    side = max(height, width); every pixel of the glyph box is painted with the
    foreground RGB and alpha = round(coverage * 255).

    Returns:
        canvas: (side, side, 4) uint8
    """
    h, w = raster.height, raster.width
    side = max(h, w)
    x_off = (side - w) // 2
    y_off = (side - h) // 2

    if raster.coverage.shape != (h, w):
        raise CanvasBoundsError(
            f"coverage shape {raster.coverage.shape} does not match bbox {h}x{w}"
        )
    if x_off < 0 or y_off < 0 or x_off + w > side or y_off + h > side:
        raise CanvasBoundsError(
            f"glyph {w}x{h} at offset ({x_off}, {y_off}) exceeds canvas side {side}"
        )

    canvas = np.zeros((side, side, 4), dtype=np.uint8)
    region = canvas[y_off : y_off + h, x_off : x_off + w]
    region[..., 0] = color.r
    region[..., 1] = color.g
    region[..., 2] = color.b
    region[..., 3] = np.rint(raster.coverage * 255.0).astype(np.uint8)
    return canvas


def save_canvas(canvas: np.ndarray, path: Path) -> None:
    if canvas.ndim != 3 or canvas.shape[2] != 4:
        raise ValueError(f"canvas must have shape (H,W,4), got {canvas.shape}")
    Image.fromarray(canvas).save(path, optimize=True)
