import pickle

import pytest

from conftest import build_cyclic_font
from font2png.errors import FontDecodeError, GlyphGeometryError
from font2png.font import GlyphFont, flatten_contours, load_font


def test_undefined_code_point_resolves_to_notdef(font):
    glyph = font.glyph(0x5A)
    assert glyph.id == 0
    assert not glyph.is_defined


def test_defined_glyph_has_nonzero_id(font):
    glyph = font.glyph(0x41)
    assert glyph.id > 0
    assert glyph.name == "A"
    assert font.glyph(0x1F600).name == "smile"


def test_unit_scale_maps_line_height_to_one_pixel(font):
    assert font.line_height == 1000
    box = font.glyph(0x41).bounding_box_at(1.0)
    assert box.width == pytest.approx(0.45)
    assert box.height == pytest.approx(0.7)
    # y-down: the glyph sits above the baseline
    assert box.max_y == pytest.approx(0.0)
    assert box.min_y == pytest.approx(-0.7)


def test_composite_glyph_is_decomposed(font):
    box = font.glyph(0x42).bounding_box_at(1.0)
    assert box.min_x == pytest.approx(0.1)
    assert box.width == pytest.approx(0.45)
    outline = font.glyph(0x42).outline_at(1.0)
    assert len(outline) == 1
    assert min(x for x, _ in outline[0]) == pytest.approx(0.1)


def test_empty_glyph_has_no_bounds(font):
    glyph = font.glyph(0x20)
    assert glyph.id > 0
    assert glyph.bounding_box_at(1.0) is None
    assert glyph.outline_at(1.0) == []


def test_cyclic_composite_raises_glyph_geometry_error(tmp_path):
    cyclic = load_font(build_cyclic_font(tmp_path / "Cyclic.ttf"))
    glyph = cyclic.glyph(0x43)
    with pytest.raises(GlyphGeometryError) as exc:
        glyph.bounding_box_at(1.0)
    assert exc.value.code_point == 0x43
    assert str(exc.value).startswith("U+0043: ")
    with pytest.raises(GlyphGeometryError):
        glyph.outline_at(1.0)
    # Other glyphs in the same font still draw
    assert cyclic.glyph(0x41).bounding_box_at(1.0).width == pytest.approx(0.45)


def test_font_survives_pickling(font):
    clone = pickle.loads(pickle.dumps(font))
    assert clone.glyph(0x41).id == font.glyph(0x41).id
    assert clone.glyph(0x4F).bounding_box_at(100.0) == font.glyph(0x4F).bounding_box_at(100.0)


def test_garbage_bytes_raise_decode_error(tmp_path):
    with pytest.raises(FontDecodeError):
        GlyphFont(b"definitely not a font")
    bad = tmp_path / "bad.ttf"
    bad.write_bytes(b"\x00\x01\x00\x00" + b"\xff" * 8)
    with pytest.raises(FontDecodeError):
        load_font(bad)


def test_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        load_font(tmp_path / "missing.ttf")


def test_flatten_lines_and_curves():
    commands = [
        ("moveTo", ((0, 0),)),
        ("lineTo", ((10, 0),)),
        ("qCurveTo", ((10, 10), (0, 10))),
        ("closePath", ()),
        ("moveTo", ((20, 0),)),
        ("curveTo", ((20, 5), (25, 10), (30, 10))),
        ("lineTo", ((30, 0),)),
        ("closePath", ()),
    ]
    subpaths = flatten_contours(commands, subdivisions=4)
    assert len(subpaths) == 2
    quad = subpaths[0]
    assert quad[:2] == [(0.0, 0.0), (10.0, 0.0)]
    assert len(quad) == 2 + 4
    assert quad[-1] == (0.0, 10.0)
    cubic = subpaths[1]
    assert cubic[-2] == (30.0, 10.0)
    assert cubic[-1] == (30.0, 0.0)


def test_flatten_implied_on_curve_points():
    # Two consecutive off-curve points imply an on-curve midpoint at (5, 10)
    commands = [
        ("moveTo", ((0, 0),)),
        ("qCurveTo", ((0, 10), (10, 10), (10, 0))),
        ("closePath", ()),
    ]
    (poly,) = flatten_contours(commands, subdivisions=2)
    assert (5.0, 10.0) in poly
    assert poly[-1] == (10.0, 0.0)


def test_flatten_all_off_curve_contour():
    commands = [("qCurveTo", ((0, 0), (10, 0), (10, 10), (0, 10), None)), ("closePath", ())]
    (poly,) = flatten_contours(commands, subdivisions=2)
    assert poly[0] == (0.0, 5.0)
    assert poly[-1] == (0.0, 5.0)
    assert (5.0, 0.0) in poly


def test_flatten_drops_degenerate_subpaths():
    commands = [("moveTo", ((0, 0),)), ("lineTo", ((1, 1),)), ("closePath", ())]
    assert flatten_contours(commands) == []
