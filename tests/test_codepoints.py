import pytest

from font2png.codepoints import (
    CodePointSelector,
    default_keep,
    parse_code_point,
    parse_unicode_range,
)
from font2png.errors import UnicodeRangeParseError


def test_explicit_range_overrides_category_filter():
    selector = CodePointSelector(parse_unicode_range("0x0041..0x005A"))
    cps = selector.select()
    assert len(cps) == 26
    assert cps == list(range(0x41, 0x5B))


def test_explicit_range_includes_unfiltered_categories():
    # Controls and whitespace are emitted when asked for explicitly
    assert CodePointSelector((0x00, 0x20)).select() == list(range(0x00, 0x21))


def test_explicit_range_skips_surrogates():
    assert CodePointSelector((0xD7FF, 0xE000)).select() == [0xD7FF, 0xE000]


def test_range_prefixes_are_interchangeable():
    assert parse_unicode_range("U+0041..0x005a") == (0x41, 0x5A)
    assert parse_unicode_range("u+1f600..U+1F64F") == (0x1F600, 0x1F64F)
    assert parse_code_point("0X10FFFF") == 0x10FFFF


@pytest.mark.parametrize(
    "text",
    [
        "0x41-0x5A",
        "41..5A",
        "0x5A..0x41",
        "0x110000..0x110001",
        "U+zz..U+41",
        "0x41..",
        "",
    ],
)
def test_malformed_ranges_are_rejected(text):
    with pytest.raises(UnicodeRangeParseError):
        parse_unicode_range(text)


def test_default_predicate():
    assert default_keep(ord("A"))
    assert default_keep(ord("7"))
    assert default_keep(ord("!"))
    assert default_keep(0x20AC)  # euro sign, Sc
    assert default_keep(0x02B0)  # modifier letter, Lm
    assert default_keep(0x2603)  # snowman, So
    assert not default_keep(0x00)
    assert not default_keep(ord(" "))
    assert not default_keep(0x0301)  # combining acute, Mn


def test_default_selection_stays_in_scalar_space():
    cps = CodePointSelector().select()
    assert cps == sorted(set(cps))
    assert cps[0] >= 0 and cps[-1] <= 0x10FFFF
    assert not any(0xD800 <= cp <= 0xDFFF for cp in cps)
    assert ord("A") in cps and ord(" ") not in cps


def test_custom_predicate_and_limit():
    selector = CodePointSelector(predicate=lambda cp: cp % 2 == 0)
    assert selector.select(limit=3) == [0, 2, 4]
