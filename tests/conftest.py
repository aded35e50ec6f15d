from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import TTFont

from font2png import BoundingBox
from font2png.font import load_font

UNITS_PER_EM = 1000
ASCENT = 800
DESCENT = -200

# Code point -> glyph name for the test font
CMAP = {
    0x20: "space",
    0x41: "A",
    0x42: "B",
    0x43: "C",
    0x4F: "O",
    0x7C: "bar",
    0x1F600: "smile",
}


def _rect(pen, x0, y0, x1, y1):
    # Clockwise in y-up (TrueType outer contour)
    pen.moveTo((x0, y0))
    pen.lineTo((x0, y1))
    pen.lineTo((x1, y1))
    pen.lineTo((x1, y0))
    pen.closePath()


def _hole(pen, x0, y0, x1, y1):
    pen.moveTo((x0, y0))
    pen.lineTo((x1, y0))
    pen.lineTo((x1, y1))
    pen.lineTo((x0, y1))
    pen.closePath()


def build_test_font(path: Path) -> Path:
    glyph_names = [".notdef", "space", "A", "B", "C", "O", "bar", "smile"]
    fb = FontBuilder(UNITS_PER_EM, isTTF=True)
    fb.setupGlyphOrder(glyph_names)
    fb.setupCharacterMap(CMAP)

    glyphs = {}

    pen = TTGlyphPen(None)
    _rect(pen, 50, 0, 550, 700)
    glyphs[".notdef"] = pen.glyph()

    glyphs["space"] = TTGlyphPen(None).glyph()

    pen = TTGlyphPen(None)
    _rect(pen, 0, 0, 450, 700)
    glyphs["A"] = pen.glyph()

    # Composite: "A" shifted right by 100 units
    pen = TTGlyphPen(glyphs)
    pen.addComponent("A", (1, 0, 0, 1, 100, 0))
    glyphs["B"] = pen.glyph()

    # Rounded blob made of quadratic segments, extremes at 0 and 600
    pen = TTGlyphPen(None)
    pen.moveTo((300, 0))
    pen.qCurveTo((0, 0), (0, 300))
    pen.qCurveTo((0, 600), (300, 600))
    pen.qCurveTo((600, 600), (600, 300))
    pen.qCurveTo((600, 0), (300, 0))
    pen.closePath()
    glyphs["C"] = pen.glyph()

    pen = TTGlyphPen(None)
    _rect(pen, 0, 0, 600, 600)
    _hole(pen, 200, 200, 400, 400)
    glyphs["O"] = pen.glyph()

    # Taller than two line heights
    pen = TTGlyphPen(None)
    _rect(pen, 0, -400, 100, 1600)
    glyphs["bar"] = pen.glyph()

    pen = TTGlyphPen(None)
    _rect(pen, 0, 0, 700, 700)
    glyphs["smile"] = pen.glyph()

    fb.setupGlyf(glyphs)
    fb.setupHorizontalMetrics({name: (600, 0) for name in glyph_names})
    fb.setupHorizontalHeader(ascent=ASCENT, descent=DESCENT)
    fb.setupNameTable({"familyName": "Font2PngTest", "styleName": "Regular"})
    fb.setupOS2(
        sTypoAscender=ASCENT,
        sTypoDescender=DESCENT,
        usWinAscent=ASCENT,
        usWinDescent=-DESCENT,
    )
    fb.setupPost()
    fb.save(str(path))
    return path


def build_cyclic_font(path: Path) -> Path:
    """Test font whose "C" is a composite that references itself."""
    src = build_test_font(path.with_name("cyclic-src.ttf"))
    # maxp/head bounds recalculation would recurse into the cycle
    tt = TTFont(str(src), recalcBBoxes=False)
    pen = TTGlyphPen({"C"})
    pen.addComponent("C", (1, 0, 0, 1, 0, 0))
    glyph = pen.glyph()
    glyph.xMin, glyph.yMin, glyph.xMax, glyph.yMax = 0, 0, 600, 600
    tt["glyf"]["C"] = glyph
    tt.save(str(path))
    return path


@pytest.fixture
def font_path(tmp_path) -> Path:
    # Kept out of tmp_path itself, which tests use as the output directory
    fonts_dir = tmp_path / "fonts"
    fonts_dir.mkdir()
    return build_test_font(fonts_dir / "Test-Regular.ttf")


@pytest.fixture
def font(font_path):
    return load_font(font_path)


@dataclass
class StubGlyph:
    """Axis-aligned rectangle glyph; `unit_box` is its y-down box at scale 1.0."""

    code_point: int
    unit_box: Optional[BoundingBox]
    id: int = 1

    def bounding_box_at(self, scale):
        b = self.unit_box
        if b is None:
            return None
        return BoundingBox(b.min_x * scale, b.min_y * scale, b.max_x * scale, b.max_y * scale)

    def outline_at(self, scale, subdivisions=8):
        b = self.bounding_box_at(scale)
        if b is None:
            return []
        return [
            [
                (b.min_x, b.min_y),
                (b.max_x, b.min_y),
                (b.max_x, b.max_y),
                (b.min_x, b.max_y),
            ]
        ]
