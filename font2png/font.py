"""
Font capability backed by fontTools.

A `GlyphFont` is decoded once from raw bytes and never mutated afterwards:
every table is decompiled up front so concurrent readers never trigger lazy
loading. Worker processes receive their own copy through pickling, which
ships only the raw bytes and the face index and re-decodes on arrival.

Coordinate conventions:
  - Font units are y-up; everything returned here is y-down pixel space with
    the glyph origin (baseline, x=0) at device (0, 0).
  - Unit scale (1.0) maps the font's line height (hhea ascent - descent) to
    one pixel, so `scale` is the line height in pixels.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from fontTools.pens.basePen import (
    decomposeQuadraticSegment,
    decomposeSuperBezierSegment,
)
from fontTools.pens.boundsPen import BoundsPen
from fontTools.pens.recordingPen import DecomposingRecordingPen
from fontTools.ttLib import TTFont

from . import BoundingBox
from .errors import FontDecodeError, GlyphGeometryError

logger = logging.getLogger("font2png.font")

Point = Tuple[float, float]
NOTDEF_ID = 0


# ---------------------------------------------------------------------------
# Contour Flattening
# ---------------------------------------------------------------------------


def _quad(p0: Point, c: Point, p1: Point, n: int, out: List[Point]) -> None:
    for i in range(1, n + 1):
        t = i / n
        mt = 1 - t
        x = mt * mt * p0[0] + 2 * mt * t * c[0] + t * t * p1[0]
        y = mt * mt * p0[1] + 2 * mt * t * c[1] + t * t * p1[1]
        out.append((x, y))


def _cubic(p0: Point, c1: Point, c2: Point, p1: Point, n: int, out: List[Point]) -> None:
    for i in range(1, n + 1):
        t = i / n
        mt = 1 - t
        x = (
            mt**3 * p0[0]
            + 3 * mt**2 * t * c1[0]
            + 3 * mt * t**2 * c2[0]
            + t**3 * p1[0]
        )
        y = (
            mt**3 * p0[1]
            + 3 * mt**2 * t * c1[1]
            + 3 * mt * t**2 * c2[1]
            + t**3 * p1[1]
        )
        out.append((x, y))


def _quad_spline(
    start: Point, points: Sequence[Point], n: int, out: List[Point]
) -> None:
    """Append a TrueType quadratic spline (implied on-curve points honoured)."""
    if len(points) == 1:
        out.append(points[0])
        return
    prev = start
    for ctrl, on in decomposeQuadraticSegment(list(points)):
        _quad(prev, ctrl, on, n, out)
        prev = on


def flatten_contours(
    commands: Sequence[Tuple[str, Tuple[Any, ...]]], subdivisions: int = 8
) -> List[List[Point]]:
    """
    Convert RecordingPen commands into closed polylines.

    Supported ops: moveTo, lineTo, qCurveTo (including the all-off-curve form
    terminated by None), curveTo, closePath, endPath. Subpaths with fewer than
    three points enclose no area and are dropped.
    """
    subpaths: List[List[Point]] = []
    current: List[Point] = []

    def finish_current():
        nonlocal current
        if len(current) >= 3:
            subpaths.append(current)
        current = []

    for op, args in commands:
        if op == "moveTo":
            finish_current()
            current.append(tuple(map(float, args[0])))

        elif op == "lineTo":
            if current:
                current.append(tuple(map(float, args[0])))

        elif op == "qCurveTo":
            if not args:
                continue
            if args[-1] is None:
                # Closed contour made only of off-curve points
                finish_current()
                controls = [tuple(map(float, p)) for p in args[:-1]]
                if not controls:
                    continue
                start = (
                    (controls[-1][0] + controls[0][0]) * 0.5,
                    (controls[-1][1] + controls[0][1]) * 0.5,
                )
                current = [start]
                _quad_spline(start, controls + [start], subdivisions, current)
                finish_current()
                continue
            if not current:
                continue
            pts = [tuple(map(float, p)) for p in args]
            _quad_spline(current[-1], pts, subdivisions, current)

        elif op == "curveTo":
            if not current:
                continue
            pts = [tuple(map(float, p)) for p in args]
            if len(pts) == 3:
                segments = [tuple(pts)]
            else:
                segments = decomposeSuperBezierSegment(pts)
            for c1, c2, p1 in segments:
                _cubic(current[-1], c1, c2, p1, subdivisions, current)

        elif op in ("closePath", "endPath"):
            finish_current()

    finish_current()
    return subpaths


# ---------------------------------------------------------------------------
# Font Capability
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GlyphHandle:
    """One code point resolved against a font. id 0 means not defined."""

    font: "GlyphFont"
    code_point: int
    id: int
    name: str

    @property
    def is_defined(self) -> bool:
        return self.id != NOTDEF_ID

    def bounding_box_at(self, scale: float) -> Optional[BoundingBox]:
        return self.font.exact_bounds(self.name, scale, self.code_point)

    def outline_at(self, scale: float, subdivisions: int = 8) -> List[List[Point]]:
        return self.font.outline(self.name, scale, self.code_point, subdivisions)


class GlyphFont:
    """
    Read-only font loaded from raw bytes.

    Args:
        data: the font file contents (TrueType, OpenType/CFF, or a collection).
        font_index: face index inside a collection; ignored for single fonts.
        source: optional path, kept for diagnostics only.

    Raises:
        FontDecodeError if fontTools cannot parse the data.
    """

    def __init__(self, data: bytes, font_index: int = 0, source: Optional[str] = None):
        self._data = bytes(data)
        self.font_index = font_index
        self.source = source
        self._decode()

    def _decode(self) -> None:
        try:
            tt = TTFont(io.BytesIO(self._data), fontNumber=self.font_index, lazy=False)
            tt.ensureDecompiled()
            cmap = tt.getBestCmap() or {}
            glyph_set = tt.getGlyphSet()
            hhea = tt["hhea"]
            units_per_em = tt["head"].unitsPerEm
        except Exception as e:
            raise FontDecodeError(
                f"Error constructing font from {self.source or '<bytes>'}: {e}"
            ) from e

        line_height = float(hhea.ascent - hhea.descent)
        if line_height <= 0:
            line_height = float(units_per_em)

        self._tt = tt
        self._cmap = dict(cmap)
        self._glyph_set = glyph_set
        self.line_height = line_height
        self.num_glyphs = len(tt.getGlyphOrder())
        logger.debug(
            "Decoded font %s: %d glyphs, %d mapped code points, line height %.1f units",
            self.source or "<bytes>",
            self.num_glyphs,
            len(self._cmap),
            self.line_height,
        )

    def __getstate__(self):
        return {"data": self._data, "font_index": self.font_index, "source": self.source}

    def __setstate__(self, state):
        self._data = state["data"]
        self.font_index = state["font_index"]
        self.source = state["source"]
        self._decode()

    def glyph(self, code_point: int) -> GlyphHandle:
        name = self._cmap.get(code_point)
        if name is None:
            return GlyphHandle(self, code_point, NOTDEF_ID, ".notdef")
        return GlyphHandle(self, code_point, self._tt.getGlyphID(name), name)

    def pixels_per_unit(self, scale: float) -> float:
        return scale / self.line_height

    def _draw(self, glyph_name: str, pen, code_point: int) -> None:
        # Broken composites (cycles, missing components) fail inside fontTools
        try:
            self._glyph_set[glyph_name].draw(pen)
        except Exception as e:
            raise GlyphGeometryError(
                code_point, f"cannot draw glyph {glyph_name!r}: {type(e).__name__}: {e}"
            ) from e

    def exact_bounds(
        self, glyph_name: str, scale: float, code_point: int
    ) -> Optional[BoundingBox]:
        pen = BoundsPen(self._glyph_set)
        self._draw(glyph_name, pen, code_point)
        if pen.bounds is None:
            return None
        x0, y0, x1, y1 = pen.bounds
        k = self.pixels_per_unit(scale)
        # y flip: font max y becomes the top (smallest) pixel row
        return BoundingBox(x0 * k, -y1 * k, x1 * k, -y0 * k)

    def outline(
        self, glyph_name: str, scale: float, code_point: int, subdivisions: int = 8
    ) -> List[List[Point]]:
        pen = DecomposingRecordingPen(self._glyph_set)
        self._draw(glyph_name, pen, code_point)
        k = self.pixels_per_unit(scale)
        return [
            [(x * k, -y * k) for x, y in sp]
            for sp in flatten_contours(pen.value, subdivisions)
        ]


def load_font(path: Path, font_index: int = 0) -> GlyphFont:
    """Read and decode a font file. OSError propagates; bad data → FontDecodeError."""
    path = Path(path)
    data = path.read_bytes()
    return GlyphFont(data, font_index=font_index, source=str(path))
